"""CDK App entry point for the log auto-subscribe infrastructure."""

import os
import sys
from pathlib import Path

# Add src to path so we can import our config module
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from aws_cdk import App, Environment
from subscription.config import load_config

from infra.auto_subscribe_stack import AutoSubscribeStack


def main():
    """Main CDK app entry point."""
    app = App()

    # DESTINATION_ARN must be set in the environment (or config/{env}.yml)
    env_name = os.getenv("ENVIRONMENT", "dev")
    config = load_config(env_name)

    # Prefer the bundled asset (code + dependencies) when it has been built
    bundle_dir = Path(__file__).parent.parent / "build" / "lambda"
    code_path = bundle_dir if bundle_dir.exists() else None
    if code_path is None:
        print("WARNING: build/lambda not found; run `nox -s bundle` before deploying.")

    env = Environment(
        account=os.getenv("CDK_DEFAULT_ACCOUNT"),
        region=config.aws.region or os.getenv("CDK_DEFAULT_REGION"),
    )

    AutoSubscribeStack(
        app,
        f"LogAutoSubscribe-{config.environment}",
        config=config,
        code_path=code_path,
        env=env,
        description=f"Log group auto-subscription for {config.environment} environment",
    )

    app.synth()


if __name__ == "__main__":
    main()
