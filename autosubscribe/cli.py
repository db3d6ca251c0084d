from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from pydantic import ValidationError

from ops.new_log_groups import NewLogGroupHandler
from ops.reconciler import Reconciler
from subscription.aws import LogsSubscriptionClient
from subscription.config import load_config
from subscription.guard import require_apply_allowed_or_exit
from subscription.logging_utils import configure_logging
from subscription.schemas import GroupOutcome, OutcomeAction
from subscription.subscriber import Subscriber


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="log-auto-subscribe",
        description="Keep CloudWatch Logs log groups subscribed to one destination",
    )
    parser.add_argument("--env", default=None, help="Configuration environment (default: $ENVIRONMENT or dev)")
    parser.add_argument("--config-dir", type=Path, default=None, help="Directory holding {env}.yml")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("plan", help="Report what a sweep would change without writing")

    sweep = sub.add_parser("sweep", help="Subscribe every eligible log group")
    sweep.add_argument("--apply", action="store_true", help="Actually write; otherwise behaves like plan")

    one = sub.add_parser("subscribe", help="Subscribe a single log group")
    one.add_argument("log_group_name")
    one.add_argument("--force", action="store_true", help="Skip the eligibility check")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        config = load_config(args.env, config_dir=args.config_dir)
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2
    configure_logging(config.logging)
    client = LogsSubscriptionClient(config)

    if args.command == "subscribe":
        require_apply_allowed_or_exit(config, f"subscribe {args.log_group_name}")
        if args.force:
            Subscriber(client).ensure_subscription(args.log_group_name, config.destination_arn)
            outcome = GroupOutcome(log_group_name=args.log_group_name, action=OutcomeAction.SUBSCRIBED)
        else:
            event = {"detail": {"requestParameters": {"logGroupName": args.log_group_name}}}
            outcome = NewLogGroupHandler(config, client).handle(event)
        print(outcome.model_dump_json(indent=2, exclude_none=True))
        return 0

    apply = args.command == "sweep" and args.apply
    if apply:
        require_apply_allowed_or_exit(config, "sweep log groups")

    report = Reconciler(config, client, dry_run=not apply).run()
    print(json.dumps(report.model_dump(mode="json"), indent=2))
    return 1 if report.failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
