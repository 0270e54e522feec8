import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


@pytest.fixture()
def domain():
    from ordering.domain import ordering

    return ordering


@pytest.fixture()
def service():
    from ordering.order.service import OrderService

    return OrderService()


@pytest.fixture()
def buyer():
    from ordering.order.service import Requester

    return Requester(user_id="user-001")


@pytest.fixture()
def admin():
    from ordering.order.service import Requester

    return Requester(user_id="admin-001", role="admin")


@pytest.fixture()
def place(service, buyer):
    """Place an order for ``buyer`` (or ``requester``) with one album by default."""

    def _place(items=None, subtotal=10.0, tax_rate=0.1, total=11.0, requester=None, idempotency_key=None):
        return service.create_order(
            requester or buyer,
            items=items if items is not None else [{"item_ref": "album-A", "quantity": 1}],
            subtotal=subtotal,
            tax_rate=tax_rate,
            total=total,
            idempotency_key=idempotency_key,
        )

    return _place
