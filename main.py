"""CLI entrypoint: research, evaluate or score a campaign brief."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
import sys

from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from config import get_settings
from core import CampaignContext, Evaluation, OfferIQ, ResearchLevel, ResearchPack, Traffic
from pipeline.evaluate import evaluate_campaign, evaluate_with_pack
from pipeline.research import run_research
from utils import setup_app_logging


console = Console()

TRAFFIC_STYLE = {
    Traffic.GREEN: "green",
    Traffic.AMBER: "yellow",
    Traffic.RED: "red",
    Traffic.NA: "dim",
}


def load_campaign(path: str) -> CampaignContext:
    """Read a campaign JSON file (a campaign object with ``briefSpec``)."""
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if "id" not in raw:
        raw = {"id": Path(path).stem, "briefSpec": raw}
    return CampaignContext.model_validate(raw)


def _dump(model) -> None:
    print(json.dumps(model.model_dump(mode="json", by_alias=True), ensure_ascii=False, indent=2))


def render_offer(offer: OfferIQ) -> None:
    console.print(
        Panel.fit(
            f"[bold]OfferIQ {offer.score}[/bold]  verdict: [cyan]{offer.verdict.value}[/cyan]  "
            f"mode: {offer.mode.value}  confidence: {offer.confidence:.2f}",
            border_style="blue",
        )
    )
    table = Table(title="Lenses")
    table.add_column("Lens")
    table.add_column("Score", justify="right")
    table.add_column("Why")
    for name, lens in offer.lenses:
        table.add_row(name, f"{lens.score:.1f}", lens.why)
    console.print(table)

    if offer.hard_flags:
        console.print("[bold red]Hard flags:[/bold red] " + ", ".join(flag.value for flag in offer.hard_flags))
    if offer.recommendations:
        console.print("\n[bold]Recommendations[/bold]")
        for rec in offer.recommendations:
            console.print(f"- {rec}")
    if offer.asks:
        console.print("\n[bold]Asks[/bold]")
        for ask in offer.asks:
            console.print(f"- {ask}")


def render_research(pack: ResearchPack) -> None:
    meta = pack.meta
    console.print(
        Panel.fit(
            f"[bold]Research {meta.level.value}[/bold]  provider: {meta.search_provider}  "
            f"category: {meta.category_tag.value if meta.category_tag else 'n/a'}  "
            f"pages: {meta.pages_fetched}/{meta.pages_attempted}",
            border_style="blue",
        )
    )
    for title, section in (
        ("Brand", pack.brand),
        ("Audience", pack.audience),
        ("Category", pack.category),
        ("Competitors", pack.competitors),
        ("Retailers", pack.retailers),
        ("Market", pack.market),
        ("Season", pack.season),
        ("Signals", pack.signals),
    ):
        if not section.facts:
            continue
        console.print(f"\n[bold cyan]{title}[/bold cyan]")
        for fact in section.facts:
            console.print(f"- {fact.claim} [dim]({fact.source})[/dim]")
    if pack.competitors.promos:
        table = Table(title="Competitor promos")
        table.add_column("Brand")
        table.add_column("Type")
        table.add_column("Headline")
        for promo in pack.competitors.promos:
            table.add_row(promo.brand, promo.type.value, promo.headline or promo.title or "")
        console.print(table)
    for warning in meta.warnings:
        console.print(f"[yellow]warning:[/yellow] {warning}")


def render_evaluation(evaluation: Evaluation) -> None:
    render_offer(evaluation.offer_iq)
    board = evaluation.scoreboard
    table = Table(title=f"Scoreboard: {board.decision.value}")
    table.add_column("Cell")
    table.add_column("Status")
    table.add_column("Why")
    table.add_column("Fix")
    for key, cell in board.cells().items():
        style = TRAFFIC_STYLE[cell.status]
        table.add_row(key, f"[{style}]{cell.status.value}[/{style}]", cell.why, cell.fix or "")
    console.print(table)
    if board.conditions:
        console.print(f"[bold]Conditions:[/bold] {board.conditions}")
    for item in board.dealbreakers:
        console.print(f"[bold red]Dealbreaker:[/bold red] {item}")


def main() -> None:
    parser = argparse.ArgumentParser(description="OfferScope promotion evaluator")
    sub = parser.add_subparsers(dest="command", required=True)

    research = sub.add_parser("research", help="Collect a research pack")
    research.add_argument("brief")
    research.add_argument("--level", default="LITE", choices=[level.value for level in ResearchLevel])
    research.add_argument("--force-refresh", action="store_true")
    research.add_argument("--json", action="store_true")

    evaluate = sub.add_parser("evaluate", help="Research then score and gate")
    evaluate.add_argument("brief")
    evaluate.add_argument("--level", default="LITE", choices=[level.value for level in ResearchLevel])
    evaluate.add_argument("--force-refresh", action="store_true")
    evaluate.add_argument("--json", action="store_true")

    score = sub.add_parser("score", help="Score and gate without research")
    score.add_argument("brief")
    score.add_argument("--json", action="store_true")

    args = parser.parse_args()

    settings = get_settings()
    setup_app_logging(
        level=getattr(logging, settings.general.log_level.upper(), logging.INFO),
        use_rich=settings.general.use_rich,
    )

    try:
        ctx = load_campaign(args.brief)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        console.print(f"[red]Cannot read brief {args.brief}: {e}[/red]")
        sys.exit(2)

    if args.command == "research":
        pack = asyncio.run(run_research(ctx, args.level, force_refresh=args.force_refresh))
        if pack is None:
            console.print("[red]Research failed; see logs.[/red]")
            sys.exit(1)
        if args.json:
            _dump(pack)
        else:
            render_research(pack)
        return

    if args.command == "evaluate":
        evaluation = asyncio.run(
            evaluate_campaign(ctx, ResearchLevel(args.level), force_refresh=args.force_refresh)
        )
        if args.json:
            _dump(evaluation)
        else:
            render_evaluation(evaluation)
        return

    if args.command == "score":
        evaluation = evaluate_with_pack(ctx, None)
        if args.json:
            _dump(evaluation)
        else:
            render_evaluation(evaluation)


if __name__ == "__main__":
    main()
