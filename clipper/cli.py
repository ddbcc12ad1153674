"""Command-line tools for replaying packet dumps and inspecting clips."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table
from rich.traceback import install as install_rich_traceback

from .audio import container
from .audio.decoder import AudioDecodingError, available_decoders, create_decoder
from .capture.packet_dump import PacketDumpError, first_timestamp_ms, load_packets
from .capture.reconstructor import Reconstructor
from .config import Config, ConfigError
from .utils.logging_setup import configure_logging

install_rich_traceback(suppress=[typer])

app = typer.Typer(help="Rolling voice capture: replay packet dumps into WAV clips.")
console = Console()


def _load_config(config_paths: Optional[List[Path]]) -> Config:
    try:
        return Config.from_yaml(config_paths or [])
    except ConfigError as exc:
        console.print(f"[red]Invalid configuration:[/red] {exc}")
        raise typer.Exit(code=2) from exc


@app.command("replay")
def replay(
    dump_path: Path = typer.Argument(..., help="Packet dump JSON written with capture.dump_packets"),
    output: Path = typer.Option(Path("test-clip.wav"), "--output", "-o", help="Destination WAV file"),
    duration_ms: Optional[int] = typer.Option(None, "--duration-ms", help="Clip length (default: max clip duration)"),
    start_ms: Optional[float] = typer.Option(None, "--start-ms", help="Clip start (default: first packet)"),
    decoder: Optional[str] = typer.Option(None, "--decoder", help=f"One of: {', '.join(available_decoders())}"),
    config: Optional[List[Path]] = typer.Option(None, "--config", "-c", help="YAML config (repeatable)"),
    log_level: Optional[str] = typer.Option(None, help="Logging level (default: system.log_level)"),
) -> None:
    """Reconstruct a packet dump into a WAV file."""
    settings = _load_config(config)
    configure_logging(log_level or settings.system.log_level, logger_levels=settings.system.logger_levels)

    try:
        packets = load_packets(dump_path)
        codec = create_decoder(decoder or settings.capture.decoder)
    except (OSError, PacketDumpError, ConfigError, AudioDecodingError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    t0 = start_ms if start_ms is not None else first_timestamp_ms(packets)
    if t0 is None:
        console.print("[yellow]Packet dump is empty[/yellow]")
        raise typer.Exit(code=1)

    window = duration_ms or settings.capture.max_clip_duration_ms
    try:
        clip = Reconstructor(codec).reconstruct(packets, window, t0)
    except AudioDecodingError as exc:
        console.print(f"[red]Decoding failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    if clip is None:
        console.print("[yellow]No audio in the requested window[/yellow]")
        raise typer.Exit(code=1)

    wav = container.wrap(clip.pcm)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(wav)

    table = Table(title=str(output))
    table.add_column("speakers")
    table.add_column("segments")
    table.add_column("skipped")
    table.add_column("duration")
    table.add_row(
        str(len(packets)),
        str(clip.segment_count),
        str(clip.skipped_packets),
        f"{container.duration_ms(wav) / 1000:.2f}s",
    )
    console.print(table)


@app.command("info")
def info(wav_path: Path = typer.Argument(..., help="WAV file written by this tool")) -> None:
    """Print the duration of a clip."""
    data = wav_path.read_bytes()
    try:
        pcm = container.unwrap(data)
    except container.ContainerFormatError as exc:
        console.print(f"[red]{wav_path}: {exc}[/red]")
        raise typer.Exit(code=1) from exc
    console.print(
        f"{wav_path.name}: {container.duration_ms(data) / 1000:.3f}s, {len(pcm)} PCM bytes"
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
