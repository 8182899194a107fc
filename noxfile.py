"""Nox sessions for ZOON."""

import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13"]
LOCATIONS = ["src", "tests"]


@nox.session(python=PYTHON_VERSIONS[-1])
def lint(session: nox.Session) -> None:
    """Run linting and type checking."""
    session.install("ruff", "basedpyright", "codespell", "funlog", "rich")
    session.run("python", "devtools/lint.py")


@nox.session(python=PYTHON_VERSIONS)
def unit(session: nox.Session) -> None:
    """Run unit tests."""
    session.install(".[test]", "pytest-sugar")
    session.run(
        "pytest",
        "--cov=zoon",
        "--cov-report=term-missing",
        *session.posargs,
    )


@nox.session(python=PYTHON_VERSIONS[-1])
def coverage(session: nox.Session) -> None:
    """Generate coverage report."""
    session.install("coverage[toml]")
    if session.posargs and session.posargs[0] == "xml":
        session.run("coverage", "xml")
    else:
        session.run("coverage", "report", "--show-missing")
