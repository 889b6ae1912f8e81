"""CLI entry point for the relief campaign manager."""

import argparse
import logging
import random
import sqlite3
import sys
from pathlib import Path
from typing import Any

import yaml

from relief_campaigns.campaigns.builder import CampaignForm, build_campaign
from relief_campaigns.campaigns.dashboard import summarize_campaign, toggle_status
from relief_campaigns.content.generator import ContentGenerator
from relief_campaigns.core.config import Settings
from relief_campaigns.core.db import (
    delete_campaign,
    get_campaign,
    init_db,
    list_campaigns,
    save_auto_response,
    save_campaign,
    save_profile,
)
from relief_campaigns.core.schemas import (
    ABTestConfig,
    Campaign,
    JobPosting,
    ResponseProfile,
    VariationPerformance,
)
from relief_campaigns.experiments.evaluator import ExperimentEvaluator
from relief_campaigns.responses.classifier import ResponseClassifier

DEFAULT_CONFIG = "config/settings.yaml"

logger = logging.getLogger(__name__)


class CommandError(Exception):
    """A user-facing failure that ends the command with exit code 1."""


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Disaster relief recruitment campaigns - build, test, and respond",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(sub: argparse.ArgumentParser) -> None:
        sub.add_argument(
            "--config",
            default=DEFAULT_CONFIG,
            help=f"Path to settings YAML file (default: {DEFAULT_CONFIG})",
        )
        sub.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Enable verbose (DEBUG) logging",
        )

    create_parser = subparsers.add_parser("create-campaign", help="Create a campaign from a form")
    create_parser.add_argument("--form", required=True, help="Path to campaign form YAML")
    add_common(create_parser)

    list_parser = subparsers.add_parser("list-campaigns", help="Show the campaign dashboard")
    add_common(list_parser)

    toggle_parser = subparsers.add_parser(
        "toggle-campaign", help="Activate a draft or pause an active campaign",
    )
    toggle_parser.add_argument("--id", required=True, help="Campaign id")
    add_common(toggle_parser)

    delete_parser = subparsers.add_parser("delete-campaign", help="Delete a campaign")
    delete_parser.add_argument("--id", required=True, help="Campaign id")
    add_common(delete_parser)

    content_parser = subparsers.add_parser(
        "generate-content", help="Generate content variations for a campaign",
    )
    content_parser.add_argument("--campaign", required=True, help="Campaign id")
    content_parser.add_argument(
        "--count", type=int, default=None,
        help="Variations per platform (default: from settings)",
    )
    content_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    add_common(content_parser)

    respond_parser = subparsers.add_parser(
        "respond", help="Generate an auto-response for a candidate profile",
    )
    respond_parser.add_argument("--profile", required=True, help="Path to profile YAML")
    respond_parser.add_argument("--campaign", required=True, help="Campaign id")
    respond_parser.add_argument("--job", default=None, help="Path to job details YAML")
    add_common(respond_parser)

    templates_parser = subparsers.add_parser("templates", help="List response templates")
    add_common(templates_parser)

    abtest_parser = subparsers.add_parser(
        "simulate-abtest", help="Run a simulated A/B test over a campaign's variations",
    )
    abtest_parser.add_argument("--campaign", required=True, help="Campaign id")
    abtest_parser.add_argument(
        "--criteria",
        default="engagement",
        choices=["engagement", "reach", "clicks"],
        help="Winner criteria (default: engagement)",
    )
    abtest_parser.add_argument(
        "--duration", type=float, default=None,
        help="Test duration in hours (default: from settings)",
    )
    abtest_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    add_common(abtest_parser)

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def load_settings(path: str) -> Settings:
    """Load settings; a missing default config file means built-in defaults."""
    if path == DEFAULT_CONFIG and not Path(path).exists():
        logger.debug("No %s found - using default settings", path)
        return Settings()
    return Settings.from_yaml(path)


def _load_yaml(path: str) -> dict[str, Any]:
    file_path = Path(path)
    if not file_path.exists():
        msg = f"File not found: {file_path}"
        raise FileNotFoundError(msg)
    return yaml.safe_load(file_path.read_text()) or {}


def _require_campaign(conn: sqlite3.Connection, campaign_id: str) -> Campaign:
    campaign = get_campaign(conn, campaign_id)
    if campaign is None:
        msg = f"Campaign not found: {campaign_id}"
        raise CommandError(msg)
    return campaign


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_create_campaign(args: argparse.Namespace, conn: sqlite3.Connection) -> None:
    form = CampaignForm.from_yaml(args.form)
    campaign = save_campaign(conn, build_campaign(form))
    print(f"Campaign created: {campaign.id}")
    print(f"  Name: {campaign.name}")
    print(f"  Platforms: {', '.join(p.name for p in campaign.platforms)}")
    print(f"  Urgency: {campaign.target_audience.urgency_level}")


def cmd_list_campaigns(args: argparse.Namespace, conn: sqlite3.Connection) -> None:
    campaigns = list_campaigns(conn)
    if not campaigns:
        print("No campaigns yet. Create one with: python main.py create-campaign --form ...")
        return

    for campaign in campaigns:
        s = summarize_campaign(campaign)
        print(f"{s.name} [{s.status}] ({s.urgency} priority) - {s.id}")
        line = f"  Created {s.created}"
        if s.scheduled:
            line += f" | Scheduled {s.scheduled}"
        line += f" | {len(s.platforms)} platforms: {', '.join(s.platforms)}"
        print(line)
        print(
            f"  Reach {s.reach} | Engagement {s.engagement} | "
            f"Clicks {s.clicks} | Conversion {s.conversion}"
        )


def cmd_toggle_campaign(args: argparse.Namespace, conn: sqlite3.Connection) -> None:
    campaign = _require_campaign(conn, args.id)
    updated = toggle_status(campaign)
    if updated.status == campaign.status:
        print(f"Campaign {campaign.id} is {campaign.status}; status unchanged.")
        return
    save_campaign(conn, updated)
    print(f"Campaign {campaign.id}: {campaign.status} -> {updated.status}")


def cmd_delete_campaign(args: argparse.Namespace, conn: sqlite3.Connection) -> None:
    if not delete_campaign(conn, args.id):
        msg = f"Campaign not found: {args.id}"
        raise CommandError(msg)
    print(f"Campaign {args.id} deleted.")


def cmd_generate_content(
    args: argparse.Namespace,
    conn: sqlite3.Connection,
    settings: Settings,
) -> None:
    campaign = _require_campaign(conn, args.campaign)
    platforms = [p.id for p in campaign.platforms if p.enabled]
    if not platforms:
        msg = f"Campaign {campaign.id} has no enabled platforms"
        raise CommandError(msg)

    rng = random.Random(args.seed)
    generator = ContentGenerator(config=settings.content, rng=rng)
    contents = generator.generate_variations(campaign.content.prompt, platforms, args.count)
    variations = generator.build_variations(contents, len(platforms))

    content = campaign.content.model_copy(
        update={"generated_content": contents, "variations": variations},
    )
    save_campaign(conn, campaign.model_copy(update={"content": content}))

    print(f"Generated {len(contents)} posts in {len(variations)} variations for {campaign.id}")
    for variation in variations:
        print(f"  {variation.name} ({variation.id})")
        for item in variation.content:
            print(f"    [{item.platform}/{item.type}] {item.caption[:70]}...")


def cmd_respond(
    args: argparse.Namespace,
    conn: sqlite3.Connection,
    settings: Settings,
) -> None:
    campaign = _require_campaign(conn, args.campaign)
    profile = ResponseProfile.model_validate(_load_yaml(args.profile))
    job = JobPosting.model_validate(_load_yaml(args.job)) if args.job else None

    classifier = ResponseClassifier(config=settings.responses)
    scores = classifier.score_profile(profile)
    response = classifier.generate_response(profile, campaign.id, job)
    auto_send = classifier.should_auto_respond(profile, response.template)

    save_profile(conn, profile)
    save_auto_response(conn, response)

    print(
        f"Scores: skill={scores.skill_score:.2f} availability={scores.availability_score:.2f} "
        f"location={scores.location_score:.2f} overall={scores.overall_score:.2f}"
    )
    print(f"Template: {response.template.name} ({response.template.id})")
    print(f"Auto-send: {'yes' if auto_send else 'no - flagged for manual review'}")
    print(f"\nSubject: {response.subject}\n")
    print(response.message)


def cmd_templates(args: argparse.Namespace, settings: Settings) -> None:
    classifier = ResponseClassifier(config=settings.responses)
    for template in classifier.list_templates():
        triggers = ", ".join(f"{t.condition}={t.value}" for t in template.triggers)
        print(f"{template.id}: {template.name}")
        print(f"  Subject: {template.subject}")
        print(f"  Variables: {', '.join(template.variables)}")
        print(f"  Triggers: {triggers or 'none'}")


def cmd_simulate_abtest(
    args: argparse.Namespace,
    conn: sqlite3.Connection,
    settings: Settings,
) -> None:
    campaign = _require_campaign(conn, args.campaign)
    variations = campaign.content.variations
    if not variations:
        msg = f"Campaign {campaign.id} has no variations; run generate-content first"
        raise CommandError(msg)

    rng = random.Random(args.seed)
    config = ABTestConfig(
        test_duration=args.duration or settings.experiments.default_duration_hours,
        winner_criteria=args.criteria,
        variations=[v.id for v in variations],
    )
    evaluator = ExperimentEvaluator(settings.experiments)
    test_id = evaluator.start(campaign, variations, config)

    # Per-variation (engagement rate, click rate) for the simulated audience.
    rates = {v.id: (rng.uniform(0.02, 0.2), rng.uniform(0.005, 0.08)) for v in variations}
    max_rounds = settings.experiments.min_sample_size * 10
    for _ in range(max_rounds):
        if evaluator.check_for_winner(test_id):
            break
        for variation in variations:
            engagement_rate, click_rate = rates[variation.id]
            evaluator.record_metric(test_id, variation.id, "impressions", 1)
            if rng.random() < engagement_rate:
                evaluator.record_metric(test_id, variation.id, "engagement", 1)
            if rng.random() < click_rate:
                evaluator.record_metric(test_id, variation.id, "clicks", 1)
    else:
        evaluator.stop(test_id)

    results = evaluator.get_results(test_id)
    if results is None:
        msg = f"A/B test {test_id} disappeared"
        raise CommandError(msg)

    performance: dict[str, VariationPerformance] = {
        r.variation.id: r.performance for r in results.variation_results
    }
    updated_variations = [
        v.model_copy(update={"performance": performance.get(v.id)}) for v in variations
    ]
    content = campaign.content.model_copy(
        update={"variations": updated_variations, "ab_test_config": config},
    )
    save_campaign(conn, campaign.model_copy(update={"content": content}))

    print(f"A/B test {results.test_id}: {results.status} ({results.config.winner_criteria})")
    for r in results.variation_results:
        p = r.performance
        marker = " <- winner" if r.is_winner else ""
        print(
            f"  {r.variation.name}: {p.impressions} impressions, {p.engagement} engagement, "
            f"{p.clicks} clicks, {p.conversion_rate:.2%} conversion{marker}"
        )
    print(f"Winner: {results.winner.name if results.winner else 'No clear winner'}")
    for insight in results.insights:
        print(f"  - {insight}")


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = load_settings(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    if args.command == "templates":
        cmd_templates(args, settings)
        return

    conn = init_db(settings.database.path)
    try:
        if args.command == "create-campaign":
            cmd_create_campaign(args, conn)
        elif args.command == "list-campaigns":
            cmd_list_campaigns(args, conn)
        elif args.command == "toggle-campaign":
            cmd_toggle_campaign(args, conn)
        elif args.command == "delete-campaign":
            cmd_delete_campaign(args, conn)
        elif args.command == "generate-content":
            cmd_generate_content(args, conn, settings)
        elif args.command == "respond":
            cmd_respond(args, conn, settings)
        elif args.command == "simulate-abtest":
            cmd_simulate_abtest(args, conn, settings)
    except (FileNotFoundError, ValueError, CommandError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
