"""
CLI entrypoint:
- analyze: stream a folder through the classifier, print categories/groups
- hash: pHash + Laplacian variance of a single image
- compare: Hamming distance / similarity percent of two images
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterator, List, Optional

import typer
from PIL import Image
from pydantic import ValidationError

from config import AnalysisConfig, AppConfig
from engine import analyze_streaming
from errors import ConfigLoadError, InternalError, InvalidPathError, PcleanError
from image_phash import hamming, phash64, phash_hex, similarity_percent
from imaging import decode_and_resize
from logs import get_logger, init_logging
from media import media_tag_for_path
from models import CATEGORY_KEYS, ClassificationSnapshot, MediaEntry
from sharpness import laplacian_variance
from walker import iter_media_files

VERSION = "0.1.0"

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Photo Clean AI: duplicate / similar / blurry photo suggestions",
)

log = get_logger("pclean")


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose (DEBUG) logging"
    ),
) -> None:
    init_logging(level="DEBUG" if verbose else "INFO")
    global log
    log = get_logger("pclean.cli")
    if verbose:
        log.debug("Verbose logging enabled")
    # HEIC/HEIF opener if available
    try:
        import pillow_heif  # type: ignore[import-not-found]
    except ImportError:
        return
    pillow_heif.register_heif_opener()  # type: ignore[no-untyped-call]
    log.debug("HEIF/HEIC opener registered")


@app.command("version")
def version_cmd() -> None:
    typer.echo(f"photo-clean-ai v{VERSION}")


# ------------------------------- analyze --------------------------------------


def _iter_entries(
    paths: List[Path], base: Path, screenshot_markers: List[str]
) -> Iterator[MediaEntry]:
    for path in paths:
        try:
            data = path.read_bytes()
        except OSError as exc:
            log.debug(f"skip (cannot read): {path} ({exc})")
            continue
        yield MediaEntry(
            name=path.relative_to(base).as_posix(),
            data=data,
            tag=media_tag_for_path(path, screenshot_markers),
        )


def _print_snapshot(
    snap: ClassificationSnapshot, *, show_paths: bool, blur_threshold: float
) -> None:
    for key in CATEGORY_KEYS:
        cat = snap.category(key)
        typer.echo(f"{key:<10} {cat.count:6d}  {cat.size:12d} bytes")

    if not snap.groups:
        typer.echo("No similar image groups found.")
    for i, grp in enumerate(snap.groups, 1):
        typer.echo(f"Group {i} (size {len(grp)}):")
        if show_paths:
            for name in grp:
                typer.echo(f"  - {name}")

    blurry = [it for it in snap.items if it.is_blurry]
    if not blurry:
        typer.echo(f"No blurry images below threshold {blur_threshold}.")
        return
    typer.echo(f"Potentially blurry images (variance < {blur_threshold}):")
    for it in blurry:
        typer.echo(f"  {it.name} (variance {it.variance:.2f})")


@app.command("analyze")
def analyze_cmd(
    folder: Optional[Path] = typer.Argument(None, help="Folder to analyze (optional)"),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to clean.toml"
    ),
    phash_threshold: Optional[int] = typer.Option(
        None, "--phash-threshold", help="Max Hamming for similar images"
    ),
    blur_threshold: Optional[float] = typer.Option(
        None, "--blur-threshold", help="Laplacian variance below this is blurry"
    ),
    regroup_every: Optional[int] = typer.Option(
        None, "--regroup-every", help="Emit a snapshot every N images"
    ),
    show_paths: bool = typer.Option(
        False, "--paths", help="Print file names for each group"
    ),
    json_out: bool = typer.Option(False, "--json", help="Emit the final snapshot as JSON"),
) -> None:
    """Classify images into duplicate / similar / blur / other."""
    try:
        cfg = AppConfig.load(config_file)
        overrides = {
            k: v
            for k, v in (
                ("phash_threshold", phash_threshold),
                ("blur_threshold", blur_threshold),
                ("regroup_every", regroup_every),
            )
            if v is not None
        }
        try:
            analysis = AnalysisConfig.model_validate(
                {**cfg.analysis.model_dump(), **overrides}
            )
        except ValidationError as exc:
            raise ConfigLoadError(f"Invalid analysis options: {overrides}") from exc

        roots = [folder.resolve()] if folder else cfg.scan.roots
        if not roots:
            raise InvalidPathError("No folder provided and no roots configured.")

        paths = list(
            iter_media_files(
                roots,
                include_ext=cfg.scan.include_ext,
                ignore_hidden=cfg.scan.ignore_hidden,
                follow_symlinks=cfg.scan.follow_symlinks,
            )
        )
        if not paths:
            typer.echo("No images found.")
            return

        log.info(f"[bold]Analyze starting[/]: {len(paths)} file(s)")
        base = roots[0] if len(roots) == 1 else Path("/")
        final = ClassificationSnapshot.empty()
        for batch, snap in enumerate(
            analyze_streaming(
                _iter_entries(paths, base, cfg.scan.screenshot_markers), analysis
            ),
            1,
        ):
            log.info(f"Batch {batch}: {snap.all.count} image(s) classified")
            final = snap

        skipped = len(paths) - final.all.count
        if json_out:
            typer.echo(
                json.dumps(final.to_dict(include_groups=True), ensure_ascii=False, indent=2)
            )
            return

        typer.echo(f"Processed {final.all.count} images.")
        if skipped:
            typer.echo(f"Skipped {skipped} files (failed to decode).")
        if final.all.count == 0:
            typer.echo("No decodable images found.")
            raise typer.Exit(code=1)
        _print_snapshot(
            final, show_paths=show_paths, blur_threshold=analysis.blur_threshold
        )
        log.info("[green]Analyze complete[/]")

    except (InvalidPathError, ConfigLoadError) as exc:
        log.error(f"[red]Error:[/] {exc}")
        raise typer.Exit(code=1)
    except PcleanError as exc:
        log.error(f"[red]Internal error:[/] {exc}")
        raise typer.Exit(code=1)
    except typer.Exit:
        raise
    except Exception:
        log.exception("Unexpected error during analyze")
        raise typer.Exit(code=1) from InternalError(
            "Unexpected failure. Re-run with -v for details."
        )


# -------------------------------- hash ----------------------------------------


def _load_analysis(config_file: Optional[Path]) -> AnalysisConfig:
    try:
        return AppConfig.load(config_file).analysis
    except ConfigLoadError as exc:
        log.error(f"[red]Error:[/] {exc}")
        raise typer.Exit(code=1)


def _decode(path: Path, analysis: AnalysisConfig) -> Optional[Image.Image]:
    """Decode and normalize exactly as `analyze` does before hashing."""
    try:
        data = path.read_bytes()
    except OSError as exc:
        log.error(f"[red]Error:[/] cannot read {path}: {exc}")
        return None
    side = analysis.normalize_size
    im = decode_and_resize(data, width=side, height=side)
    if im is None:
        log.error(f"[red]Error:[/] cannot decode {path}")
        return None
    return im


@app.command("hash")
def hash_cmd(
    image: Path = typer.Argument(..., help="Image file"),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to clean.toml"
    ),
) -> None:
    """Print the pHash and Laplacian variance of one image."""
    analysis = _load_analysis(config_file)
    im = _decode(image, analysis)
    if im is None:
        raise typer.Exit(code=1)
    h = phash64(im, size=analysis.hash_size, dct_size=analysis.dct_size)
    typer.echo(f"phash    {phash_hex(h)}")
    typer.echo(f"variance {laplacian_variance(im):.2f}")


# ------------------------------- compare --------------------------------------


@app.command("compare")
def compare_cmd(
    a: Path = typer.Argument(..., help="First image"),
    b: Path = typer.Argument(..., help="Second image"),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to clean.toml"
    ),
) -> None:
    """Hamming distance and similarity percent between two images."""
    analysis = _load_analysis(config_file)
    ia, ib = _decode(a, analysis), _decode(b, analysis)
    if ia is None or ib is None:
        raise typer.Exit(code=1)
    ha, hb = (
        phash64(im, size=analysis.hash_size, dct_size=analysis.dct_size)
        for im in (ia, ib)
    )
    typer.echo(f"hamming    {hamming(ha, hb)}")
    typer.echo(f"similarity {similarity_percent(ha, hb, bits=analysis.dct_size**2):.1f}%")
