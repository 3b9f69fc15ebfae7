#!/usr/bin/env python3
"""Command-line front end for the debate session core.

Usage examples:
    python cli.py run --question "Is remote work better than office work?" --participants claude,gpt-4o
    python cli.py run --question "Should cities ban cars downtown?" --participants a,b,c --rounds 6 --fork-mode explore
    python cli.py status --debate-id 3f1c...
    python cli.py branches --debate-id 3f1c...
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

import click
import yaml

from branching.forest import BranchForest
from client import BranchApi, DebateApi, HttpClient
from core.errors import ApiError, format_api_error
from core.models import BranchInfo, Turn
from session import selectors
from session.state import Completed, Error
from session.store import SessionStore
from streaming.transport import StreamOptions


# ---------------------------------------------------------------------------
# Live turn display
# ---------------------------------------------------------------------------

_TYPE_STYLES: dict[str, tuple[str, str]] = {
    # participant type -> (label, ANSI colour code)
    "model": ("MODEL", "\033[1;34m"),   # bold blue
    "human": ("HUMAN", "\033[1;32m"),   # bold green
}
_RESET = "\033[0m"
_DIM = "\033[2m"


def _print_turn(index: int, turn: Turn) -> None:
    """Pretty-print a single turn to the terminal."""
    label, colour = _TYPE_STYLES.get(turn.participant_type, (turn.participant_type.upper(), "\033[1m"))

    click.echo(f"\n{colour}{'─' * 60}")
    click.echo(f"  [{label}]  #{index}  •  {turn.participant_id}")
    click.echo(f"{'─' * 60}{_RESET}")

    for paragraph in turn.content.strip().split("\n"):
        click.echo(f"  {paragraph}")

    confidence = f"  •  confidence {turn.confidence:.2f}" if turn.confidence is not None else ""
    click.echo(
        f"{_DIM}  [{turn.tokens_used} tokens  •  ${turn.cost_usd:.4f}  •  "
        f"{turn.latency_ms} ms{confidence}]{_RESET}"
    )


def _print_error(error: ApiError) -> None:
    click.echo(f"\033[1;31m{format_api_error(error)}{_RESET}", err=True)


def _print_tree(forest: BranchForest) -> None:
    def walk(branch: BranchInfo, indent: int) -> None:
        marker = "*" if branch.branch_id == forest.active_branch_id else "-"
        click.echo(
            f"{'  ' * indent}{marker} {branch.name} [{branch.fork_mode}] "
            f"({branch.branch_id[:8]}, depth {branch.depth})"
        )
        for child in forest.children(branch.branch_id):
            walk(child, indent + 1)

    for root in forest.roots():
        walk(root, 0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load_config(config_path: str = "config/default.yaml") -> dict[str, Any]:
    """Load and return the YAML config."""
    p = Path(config_path)
    if not p.exists():
        click.echo(f"Config not found: {p}. Using defaults.", err=True)
        return {}
    with open(p) as f:
        return yaml.safe_load(f) or {}


def _setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _http_client(cfg: dict[str, Any]) -> HttpClient:
    api_cfg = cfg.get("api", {})
    return HttpClient(
        base_url=api_cfg.get("base_url", "http://localhost:3000"),
        timeout=float(api_cfg.get("timeout", 30)),
    )


def _build_store(cfg: dict[str, Any]) -> SessionStore:
    """Store wired to the stream endpoint described by the config."""
    api_cfg = cfg.get("api", {})
    stream_cfg = cfg.get("stream", {})
    base_url = stream_cfg.get("base_url") or api_cfg.get("base_url", "http://localhost:3000")
    return SessionStore(base_url=base_url, stream_options=StreamOptions.from_dict(stream_cfg))


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

@click.group()
@click.option("--config", default="config/default.yaml", help="Path to YAML config")
@click.option("--log-level", default="WARNING", help="Logging level")
@click.pass_context
def cli(ctx: click.Context, config: str, log_level: str) -> None:
    """Debate Session Viewer – start debates and follow them live."""
    _setup_logging(log_level)
    ctx.ensure_object(dict)
    ctx.obj["config"] = _load_config(config)
    ctx.obj["config_path"] = config


# ---- run ------------------------------------------------------------------

@cli.command()
@click.option("--question", required=True, help="Debate question (10-500 characters)")
@click.option("--participants", required=True, help="Comma-separated participant ids")
@click.option("--rounds", default=4, type=int, help="Number of rounds")
@click.option("--threshold", default=0.8, type=float, help="Consensus threshold")
@click.option(
    "--fork-mode",
    type=click.Choice(["save", "explore"]),
    default="save",
    help="Default mode for forks",
)
@click.pass_context
def run(
    ctx: click.Context,
    question: str,
    participants: str,
    rounds: int,
    threshold: float,
    fork_mode: str,
) -> None:
    """Create a debate, start it and follow its stream until it ends."""
    cfg = ctx.obj["config"]
    participant_ids = [p.strip() for p in participants.split(",") if p.strip()]

    store = _build_store(cfg)
    store.update_config(
        question=question,
        participants=participant_ids,
        rounds=rounds,
        consensus_threshold=threshold,
        fork_mode=fork_mode,
    )
    started = store.start_debate()
    if not started:
        _print_error(started.error)  # type: ignore[arg-type]
        ctx.exit(2)

    click.echo(f"\n\033[1m{'=' * 60}")
    click.echo(f"  DEBATE: {question}")
    click.echo(f"{'=' * 60}\033[0m")
    click.echo(f"  Participants: {', '.join(participant_ids)}")
    click.echo(f"  Rounds      : {rounds}")

    async def _run() -> int:
        http = _http_client(cfg)
        api = DebateApi(http)
        finished = asyncio.Event()
        printed = 0

        def on_change(s: SessionStore) -> None:
            nonlocal printed
            history = selectors.turns(s)
            while printed < len(history):
                printed += 1
                _print_turn(printed, history[printed - 1])
            if s.transport is None:
                finished.set()

        try:
            created = await api.create_debate(started.value)  # type: ignore[arg-type]
            if not created:
                store.fail(created.error, recoverable=False)  # type: ignore[arg-type]
                _print_error(created.error)  # type: ignore[arg-type]
                return 1

            store.subscribe(on_change)
            store.debate_started(created.value)  # type: ignore[arg-type]
            click.echo(f"  Debate id   : {created.value}")

            launched = await api.start_debate(created.value)  # type: ignore[arg-type]
            if not launched:
                store.fail(launched.error, recoverable=False)  # type: ignore[arg-type]

            await finished.wait()
        finally:
            store.close()
            await http.close()

        session = store.session
        click.echo(f"\n{'=' * 60}")
        if isinstance(session, Completed):
            c = session.consensus
            click.echo(f"  CONSENSUS: {c.level} ({c.percentage:.0%})")
            click.echo(f"  Supporting {c.supporting}  •  Dissenting {c.dissenting}  •  Confidence {c.confidence:.2f}")
        elif isinstance(session, Error):
            _print_error(session.error)
        else:
            click.echo("  Stream closed before a consensus was reported.")
        click.echo(f"  Turns: {selectors.turn_count(store)}  •  Tokens: {selectors.total_tokens(store)}  •  Cost: ${selectors.total_cost_usd(store):.4f}")
        click.echo(f"{'=' * 60}")
        return 1 if isinstance(session, Error) else 0

    ctx.exit(asyncio.run(_run()))


# ---- status ---------------------------------------------------------------

@cli.command()
@click.option("--debate-id", required=True, help="Debate to inspect")
@click.pass_context
def status(ctx: click.Context, debate_id: str) -> None:
    """Show a snapshot of a debate."""
    cfg = ctx.obj["config"]

    async def _run() -> int:
        async with _http_client(cfg) as http:
            result = await DebateApi(http).get_debate(debate_id)
        if not result:
            _print_error(result.error)  # type: ignore[arg-type]
            return 1

        debate = result.value
        assert debate is not None
        click.echo(f"  Debate   : {debate.debate_id}")
        click.echo(f"  Question : {debate.question}")
        click.echo(f"  Status   : {debate.status}")
        click.echo(f"  Round    : {debate.current_round}/{debate.total_rounds}")
        click.echo(f"  Turns    : {len(debate.turns)}")
        return 0

    ctx.exit(asyncio.run(_run()))


# ---- branches -------------------------------------------------------------

@cli.command()
@click.option("--debate-id", required=True, help="Debate whose branches to list")
@click.pass_context
def branches(ctx: click.Context, debate_id: str) -> None:
    """Print the branch forest of a debate."""
    cfg = ctx.obj["config"]

    async def _run() -> int:
        async with _http_client(cfg) as http:
            result = await BranchApi(http).list_branches(debate_id)
        if not result:
            _print_error(result.error)  # type: ignore[arg-type]
            return 1

        forest = BranchForest()
        for branch in result.value or []:
            forest.add_branch(branch)
        if not len(forest):
            click.echo("No branches found.")
            return 0

        _print_tree(forest)
        report = forest.check_invariants()
        if not report:
            click.echo("\nInconsistent branch data:", err=True)
            for issue in report.issues:
                click.echo(f"  - {issue}", err=True)
            return 1
        return 0

    ctx.exit(asyncio.run(_run()))


# ---------------------------------------------------------------------------

if __name__ == "__main__":
    cli()
