#!/usr/bin/env python3
"""Sync open Jira issues to Obsidian task notes and a Kanban board.

Syncs:
- One note per open issue assigned to JIRA_USERNAMES
- A Kanban board with one lane per workflow state

Usage:
    python -m scripts.jira.sync_jira_to_obsidian
    python -m scripts.jira.sync_jira_to_obsidian --vault-backend local --local-vault ~/Vault
"""

import argparse
import logging
import sys

from services.jira.sync_tasks import SyncResult, run_jira_sync

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def print_summary(result: SyncResult) -> None:
    """Print sync summary."""
    print("\n" + "=" * 50)
    print("SYNC SUMMARY")
    print("=" * 50)
    print(f"Issues fetched:   {result['issues_fetched']}")
    print(f"Active tasks:     {result['tasks_active']}")
    print(f"Notes created:    {result['notes_created']}")
    print(f"Notes updated:    {result['notes_updated']}")
    print(f"Notes unchanged:  {result['notes_unchanged']}")
    print(f"Notes moved:      {result['notes_moved']}")
    print(f"Board columns:    {', '.join(result['columns']) or '-'}")
    print(f"Board:            {result['board_path'] or '-'}")

    if result["error"]:
        print(f"\nError: {result['error']}")
    else:
        print("\nNo errors!")
    print("=" * 50)


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Sync open Jira issues to Obsidian"
    )
    parser.add_argument(
        "--vault-backend",
        choices=["dropbox", "local"],
        help="Where the Obsidian vault lives (default: VAULT_BACKEND or dropbox)"
    )
    parser.add_argument(
        "--local-vault",
        help="Path to a local vault (default: LOCAL_VAULT_PATH)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    logger.info("Starting Jira to Obsidian sync...")

    result = run_jira_sync(
        vault_backend=args.vault_backend,
        local_vault_path=args.local_vault,
    )

    print_summary(result)

    if not result["success"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
