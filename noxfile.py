import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13"]


def _install(session: nox.Session) -> None:
    """Install the project with its test extra into the nox virtualenv."""
    session.install("-e", ".[test]")


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run full test suite across Python versions."""
    _install(session)
    session.run("pytest")


@nox.session(python=PYTHON_VERSIONS)
def tests_domain(session: nox.Session) -> None:
    """Run domain-layer tests only (aggregate rules, pricing)."""
    _install(session)
    session.run("pytest", "-m", "domain")


@nox.session(python=PYTHON_VERSIONS)
def tests_integration(session: nox.Session) -> None:
    """Run HTTP-level tests through the FastAPI TestClient."""
    _install(session)
    session.run("pytest", "-m", "integration")
