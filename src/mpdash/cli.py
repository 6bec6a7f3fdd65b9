"""Command-line interface for the MPD dashboard."""

import sys

import click
from blessed import Terminal
from loguru import logger

from mpdash.actions import KeyBindingTable
from mpdash.app import AppState, BackgroundRefresher, SyncLoop, TerminalInput
from mpdash.config import settings
from mpdash.log import setup_logging
from mpdash.mirror import PlaybackStateMirror
from mpdash.mpd_client import DaemonClient, DaemonError
from mpdash.ui import DashboardRenderer, format_time, now_playing_label, progress


def get_client() -> DaemonClient:
    """Create an MPD client from settings."""
    return DaemonClient(
        host=settings.mpd.host,
        port=settings.mpd.port,
        password=settings.mpd.password,
        timeout=settings.mpd.timeout,
    )


def open_mirror() -> PlaybackStateMirror:
    """Connect and fetch the initial state, exiting on failure."""
    client = get_client()
    try:
        client.connect()
        return PlaybackStateMirror(client)
    except DaemonError as e:
        client.disconnect()
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@click.group(invoke_without_command=True)
@click.option(
    "--host",
    envvar="MPDASH_MPD__HOST",
    default=settings.mpd.host,
    help="MPD host",
)
@click.option(
    "--port",
    envvar="MPDASH_MPD__PORT",
    default=settings.mpd.port,
    type=int,
    help="MPD port",
)
@click.pass_context
def main(ctx, host, port):
    """Terminal dashboard for MPD."""
    ctx.ensure_object(dict)
    settings.mpd.host = host
    settings.mpd.port = port
    setup_logging(settings.log.file, settings.log.level)
    if ctx.invoked_subcommand is None:
        ctx.invoke(ui)


@main.command()
@click.option(
    "--refresh-thread",
    is_flag=True,
    help="Refresh from a background thread instead of on each tick",
)
@click.pass_context
def ui(ctx, refresh_thread=False):
    """Run the interactive dashboard."""
    mirror = open_mirror()

    state = AppState(
        KeyBindingTable(settings.keys),
        tab_titles=tuple(settings.ui.tab_titles),
        volume_step=settings.ui.volume_step,
    )
    state.attach(mirror)

    use_thread = refresh_thread or settings.ui.refresh_mode == "thread"
    refresher = None
    if use_thread:
        refresher = BackgroundRefresher(mirror, settings.ui.refresh_interval_ms / 1000)

    term = Terminal()
    loop = SyncLoop(
        mirror,
        state,
        TerminalInput(term),
        DashboardRenderer(term, settings),
        tick_rate=settings.ui.tick_rate_ms / 1000,
        refresh_on_tick=not use_thread,
    )

    failed = False
    try:
        if refresher is not None:
            refresher.start()
        with term.fullscreen(), term.cbreak(), term.hidden_cursor():
            loop.run()
    except Exception as e:
        logger.exception("Input loop failed")
        click.echo(f"Input Error: {e!r}", err=True)
        failed = True
    finally:
        if refresher is not None:
            refresher.stop()
            refresher.join()
        mirror.close()

    if failed:
        sys.exit(1)


@main.command()
@click.pass_context
def status(ctx):
    """Show current playback status."""
    mirror = open_mirror()
    try:
        s = mirror.status()
        click.echo(f"State:    {s.state}")
        click.echo(f"Volume:   {s.volume}%")
        if s.song is not None:
            click.echo(f"Track:    {s.song + 1}/{s.queue_len}")
            click.echo(f"Playing:  {now_playing_label(mirror.current_track())}")
        label, percent = progress(s)
        if label:
            click.echo(f"Position: {label} ({percent}%)")
    finally:
        mirror.close()


@main.command()
@click.pass_context
def queue(ctx):
    """List the play queue."""
    mirror = open_mirror()
    try:
        playing = mirror.current_playing_index()
        for i, track in enumerate(mirror.queue()):
            marker = "*" if i == playing else " "
            seconds = track.duration_seconds
            length = format_time(seconds) if seconds is not None else "-"
            title = track.title or track.file
            click.echo(f"{marker}{i:4d}  {length:>6}  {track.artist} - {title}")
    finally:
        mirror.close()


@main.command()
@click.pass_context
def playlists(ctx):
    """List stored playlists."""
    mirror = open_mirror()
    try:
        for p in mirror.playlists():
            click.echo(f"  {p.name}")
    finally:
        mirror.close()


@main.command()
@click.pass_context
def toggle(ctx):
    """Toggle pause."""
    mirror = open_mirror()
    try:
        if not mirror.issue_toggle_pause():
            click.echo("Failed to toggle pause", err=True)
            sys.exit(1)
        click.echo("Toggled")
    finally:
        mirror.close()


@main.command()
@click.option("-s", "--set", "value", type=int, help="Set volume to VALUE percent")
@click.option("--up", is_flag=True, help="Increase volume by one step")
@click.option("--down", is_flag=True, help="Decrease volume by one step")
@click.pass_context
def vol(ctx, value, up, down):
    """Get or set volume."""
    mirror = open_mirror()
    try:
        step = settings.ui.volume_step
        current = mirror.status().volume
        delta = 0
        if up:
            delta = step
        elif down:
            delta = -step
        elif value is not None:
            delta = value - current
        # Already at the requested (clamped) level: nothing to send
        changes = max(0, min(100, current + delta)) != current
        if delta and changes and not mirror.issue_volume(delta):
            click.echo("Failed to set volume", err=True)
            sys.exit(1)
        click.echo(f"Volume: {mirror.status().volume}%")
    finally:
        mirror.close()


@main.command()
@click.argument("position", type=int)
@click.pass_context
def play(ctx, position):
    """Switch playback to queue POSITION (0-based)."""
    mirror = open_mirror()
    try:
        if not mirror.issue_switch(position):
            click.echo(f"Failed to play position {position}", err=True)
            sys.exit(1)
        click.echo(f"Playing {position}")
    finally:
        mirror.close()


if __name__ == "__main__":
    main()
