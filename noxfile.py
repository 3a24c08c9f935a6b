import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13"]

nox.options.sessions = ["tests"]


def _install(session: nox.Session) -> None:
    """Install storefront and its test dependencies into the session."""
    session.run("poetry", "install", "--with", "test", external=True)
    # psycopg2-binary ships a C extension; poetry's wheel cache may hold one
    # built for another interpreter.
    session.run("pip", "install", "--force-reinstall", "--no-cache-dir", "psycopg2-binary")


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Every suite, against the in-memory provider."""
    _install(session)
    session.run("pytest", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def tests_domain(session: nox.Session) -> None:
    """Aggregates, value objects and the status state machine."""
    _install(session)
    session.run("pytest", "-m", "domain", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def tests_api(session: nox.Session) -> None:
    """HTTP endpoints and feature scenarios."""
    _install(session)
    session.run("pytest", "-m", "integration or bdd", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def tests_postgres(session: nox.Session) -> None:
    """Every suite against PostgreSQL (needs the database in domain.toml)."""
    _install(session)
    session.run("pytest", "--env", "production", *session.posargs)
