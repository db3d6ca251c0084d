"""Noxfile for the log auto-subscribe project.

Provides automated sessions for:
- Linting and formatting
- Testing with coverage
- Type checking
- Bundling the Lambda code asset
"""

import nox

# Python versions to test against
PYTHON_VERSIONS = ["3.11"]

# Common locations
PACKAGE_DIR = "autosubscribe"
SRC_DIR = "src"
TESTS_DIR = "tests"
BUNDLE_DIR = "build/lambda"


@nox.session(python=PYTHON_VERSIONS)
def tests(session):
    """Run the test suite with coverage."""
    session.install(".[test,infra]")

    session.run(
        "pytest",
        "--cov=subscription",
        "--cov=ops",
        "--cov=" + PACKAGE_DIR,
        "--cov-report=term-missing",
        "--cov-fail-under=80",
        *session.posargs,
    )


@nox.session(python=PYTHON_VERSIONS)
def lint(session):
    """Run linting with ruff."""
    session.install("ruff")
    session.run("ruff", "check", ".")


@nox.session(python=PYTHON_VERSIONS)
def format(session):
    """Format code with ruff."""
    session.install("ruff")
    session.run("ruff", "format", ".")
    session.run("ruff", "check", "--fix", ".")


@nox.session(python=PYTHON_VERSIONS)
def typecheck(session):
    """Run type checking with mypy."""
    session.install(".[dev]")
    session.run("mypy", PACKAGE_DIR, SRC_DIR)


@nox.session(python=PYTHON_VERSIONS)
def bundle(session):
    """Build the Lambda code asset: our packages plus their dependencies.

    boto3 is provided by the Lambda runtime but is bundled anyway so the
    deployed version matches the tested one.
    """
    import shutil
    from pathlib import Path

    target = Path(BUNDLE_DIR)
    if target.exists():
        shutil.rmtree(target)
    session.run("pip", "install", ".", "--target", str(target))


@nox.session(python=PYTHON_VERSIONS)
def synth(session):
    """Synthesize the CDK app (no deployment)."""
    session.install(".[infra]")
    session.run("cdk", "synth", "--app", "python -m infra.app", external=True)


@nox.session
def clean(session):
    """Clean up build artifacts and cache files."""
    import shutil
    from pathlib import Path

    # Directories to clean
    clean_dirs = [
        ".pytest_cache",
        ".coverage",
        "htmlcov",
        "dist",
        "build",
        "cdk.out",
        "*.egg-info",
        ".mypy_cache",
        ".ruff_cache",
        "__pycache__",
    ]

    for pattern in clean_dirs:
        for path in Path(".").glob(f"**/{pattern}"):
            if path.is_dir():
                session.log(f"Removing directory: {path}")
                shutil.rmtree(path)
            elif path.is_file():
                session.log(f"Removing file: {path}")
                path.unlink()


# Default session when running `nox` without arguments
nox.options.sessions = ["tests", "lint", "typecheck"]
