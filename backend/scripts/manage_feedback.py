#!/usr/bin/env python3
"""
Command-line script for operating on the stored feedback collection.

Usage:
    python scripts/manage_feedback.py [--summary] [--export PATH]
        [--seed-profile ROLE NAME EMAIL] [--issue-token USER_ID ROLE]

Options:
    --summary        Show statistics for the stored feedback
    --export PATH    Write the whole collection to a JSON file
    --seed-profile   Write the profile used to prefill submissions for a role
    --issue-token    Print an access token for local testing
"""

import argparse
import logging
import os
import sys

import boto3
from botocore.exceptions import ClientError

# Add the src directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.feedback import FeedbackCategory, FeedbackStatus, UserProfile
from services.auth_service import AuthService, UserRole
from services.feedback_management_service import export_feedback
from services.feedback_query import compute_statistics
from services.feedback_store import FeedbackStore
from services.profile_service import ProfileService
from utils.constants import FEEDBACK_SLOT_KEY
from utils.slot_store import SlotStore

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def setup_slot_store() -> SlotStore:
    """Setup the app-state slot store."""
    try:
        dynamodb = boto3.resource(
            "dynamodb", region_name=os.environ.get("AWS_DEFAULT_REGION", "us-west-2")
        )
        environment = os.environ.get("ENVIRONMENT", "dev")
        table_name = os.environ.get("APP_STATE_TABLE", f"taskflow-app-state-{environment}")
        logger.info(f"Using DynamoDB table: {table_name}")
        return SlotStore(dynamodb.Table(table_name))

    except ClientError as e:
        logger.error(f"AWS error: {e.response['Error']['Message']}")
        sys.exit(1)


def show_summary(slot_store: SlotStore) -> None:
    """Print statistics and per-category counts."""
    if not slot_store.exists(FEEDBACK_SLOT_KEY):
        print("No feedback has been stored yet.")
        return

    records = FeedbackStore(slot_store).load_all()
    stats = compute_statistics(records)

    print("\n" + "=" * 40)
    print("FEEDBACK SUMMARY")
    print("=" * 40)
    print(f"Total: {stats.total}")
    for status in FeedbackStatus:
        print(f"  {status.label}: {getattr(stats, status.value)}")
    print(f"Average rating: {stats.average_rating}")

    print("\nBy category:")
    for category in FeedbackCategory:
        count = sum(1 for r in records if r.category == category)
        print(f"  {category.label}: {count}")


def export_to_file(slot_store: SlotStore, path: str) -> int:
    """Write every stored record to ``path``; returns the record count."""
    records = FeedbackStore(slot_store).load_all()
    with open(path, "w") as f:
        f.write(export_feedback(records))
    logger.info(f"Exported {len(records)} feedback records to {path}")
    return len(records)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the script."""
    parser = argparse.ArgumentParser(description="TaskFlow feedback management")
    parser.add_argument("--summary", action="store_true", help="Show feedback statistics")
    parser.add_argument("--export", metavar="PATH", help="Export feedback to a JSON file")
    parser.add_argument(
        "--seed-profile",
        nargs=3,
        metavar=("ROLE", "NAME", "EMAIL"),
        help="Write the submission profile for a role",
    )
    parser.add_argument(
        "--issue-token",
        nargs=2,
        metavar=("USER_ID", "ROLE"),
        help="Print an access token for local testing",
    )

    args = parser.parse_args(argv)

    if not any([args.summary, args.export, args.seed_profile, args.issue_token]):
        parser.print_help()
        return 1

    if args.issue_token:
        user_id, role = args.issue_token
        roles = [r.value for r in UserRole]
        if role not in roles:
            parser.error(f"--issue-token: unknown role '{role}' (choose from {', '.join(roles)})")
        token = AuthService().create_access_token(user_id, UserRole(role))
        print(token["access_token"])
        return 0

    slot_store = setup_slot_store()

    try:
        if args.seed_profile:
            role, name, email = args.seed_profile
            ProfileService(slot_store).save_profile(role, UserProfile(name=name, email=email))
            logger.info(f"Saved {role} profile for {email}")

        if args.export:
            export_to_file(slot_store, args.export)

        if args.summary:
            show_summary(slot_store)

    except Exception as e:
        logger.error(f"Feedback management failed: {str(e)}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
