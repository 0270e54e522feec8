"""Order complete template: sent once when an order reaches complete."""


class OrderCompleteTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("id", "N/A")
        currency = str(context.get("currency", "usd")).upper()
        total = float(context.get("total", 0.0))
        lines = [f"  - {item['item_ref']} x {item['quantity']}" for item in context.get("items", [])]
        return {
            "subject": f"Order #{order_id} is complete",
            "body": (
                f"Hello {context.get('owner_id', 'there')},\n\n"
                f"Your order #{order_id} is complete. The following albums are now in your library:\n"
                + "\n".join(lines)
                + f"\n\nOrder Total: {currency} {total:.2f}\n\n"
                "Thank you for your purchase!"
            ),
        }
