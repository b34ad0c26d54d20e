"""Pipeline controller: turns an ordered fragment list into one CSS bundle."""

import logging
import os
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, Optional, Sequence, Tuple

from .compiler import Compiler, StylusCompiler
from .compressor import compress
from .options import Bundle, BundleOptions
from .prefixer import prefix_tree, resolve_targets
from .resolver import Fragment, resolve
from .sourcemap import MapArtifact, emit, write_artifact
from .tree import Stylesheet, render
from .urls import RewriteContext, rewrite
from ..managers.files import FileStore
from ..utils.common import normalize_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BundleOutput:
    """Result of one compile."""

    css: str
    map_artifact: Optional[MapArtifact] = None


@dataclass(frozen=True)
class PipelineContext:
    """State threaded through the stages; each stage returns a new one."""

    bundle: Bundle
    options: BundleOptions
    source_dir: str
    files: FileStore
    compiler: Compiler
    fragments: Tuple[Fragment, ...] = ()
    stylesheet: Stylesheet = Stylesheet()
    touched: Tuple[str, ...] = ()
    css: str = ''
    map_artifact: Optional[MapArtifact] = None


Stage = Callable[[PipelineContext], PipelineContext]


def resolve_stage(ctx: PipelineContext) -> PipelineContext:
    """Compile the fragments into one rule tree, each file included once."""
    unit = resolve(ctx.fragments, ctx.options.lookup_roots, ctx.compiler, ctx.files)
    return replace(ctx, stylesheet=unit.stylesheet, touched=unit.files)


def rewrite_stage(ctx: PipelineContext) -> PipelineContext:
    """Rebase or inline url() references."""
    if ctx.options.url is None:
        return ctx
    context = RewriteContext(
        output_dir=ctx.bundle.output_dir,
        source_dir=ctx.source_dir,
        strict=ctx.options.strict_assets,
        files=ctx.files,
    )
    return replace(ctx, stylesheet=rewrite(ctx.stylesheet, ctx.options.url, context))


def prefix_stage(ctx: PipelineContext) -> PipelineContext:
    """Add vendor prefixes for the configured browsers."""
    targets = ctx.options.browser_targets
    if targets is None:
        return ctx
    rules = resolve_targets(targets, source_dir=ctx.source_dir)
    return replace(ctx, stylesheet=prefix_tree(ctx.stylesheet, rules))


def emit_map_stage(ctx: PipelineContext) -> PipelineContext:
    """Render the tree and attach the source map; a map file is written here."""
    rendered = render(ctx.stylesheet, ctx.options.emit_comments, ctx.bundle.output_dir)
    emitted = emit(rendered.css, rendered.positions, ctx.options.sourcemap, ctx.bundle, ctx.files)
    if emitted.artifact is not None:
        write_artifact(emitted.artifact)
    return replace(ctx, css=emitted.css, map_artifact=emitted.artifact)


def compress_stage(ctx: PipelineContext) -> PipelineContext:
    """Minify the rendered bundle when requested."""
    if not ctx.options.compress:
        return ctx
    return replace(ctx, css=compress(ctx.css))


STAGES: Tuple[Tuple[str, Stage], ...] = (
    ('Resolve', resolve_stage),
    ('RewriteURLs', rewrite_stage),
    ('Prefix', prefix_stage),
    ('EmitMap', emit_map_stage),
    ('Compress', compress_stage),
)


def compile_bundle(fragments: Sequence[Fragment], bundle: Bundle,
                   options: Optional[BundleOptions] = None,
                   compiler: Optional[Compiler] = None) -> BundleOutput:
    """Compile ``fragments`` into the CSS of ``bundle``.

    Args:
        fragments: Root fragments in bundle order
        bundle: Output bundle
        options: Build options, defaults when omitted
        compiler: Dialect compiler, :class:`StylusCompiler` by default

    Returns:
        Bundle CSS and, with ``sourcemap=True``, the map written next to it

    Raises:
        ResolutionError: If an import target cannot be found
        SourceSyntaxError: If a fragment is malformed
        AssetReadError: If a url() target is unreadable and assets are strict
        PrefixConfigError: If the browser targets are invalid
        FileOperationError: If a fragment cannot be read or the map written
    """
    options = options or BundleOptions()
    compiler = compiler or StylusCompiler(use_nib=options.use_nib)
    bundle = replace(bundle, output_dir=normalize_path(bundle.output_dir))
    if bundle.source_dir:
        source_dir = normalize_path(bundle.source_dir)
    elif fragments:
        source_dir = os.path.dirname(normalize_path(fragments[0].path))
    else:
        source_dir = bundle.output_dir

    start_time = datetime.now()
    with FileStore() as files:
        ctx = PipelineContext(bundle, options, source_dir, files, compiler, tuple(fragments))
        for name, stage in STAGES:
            logger.debug(f"{bundle.css_file}: {name}")
            ctx = stage(ctx)
        stats = files.get_stats()

    elapsed = (datetime.now() - start_time).total_seconds()
    logger.info(
        f"Built {bundle.css_file}: {len(ctx.fragments)} fragments, {len(ctx.touched)} files, "
        f"{len(ctx.css)} chars in {elapsed:.3f}s ({stats['hits']} cache hits)"
    )
    return BundleOutput(ctx.css, ctx.map_artifact)


__all__ = [
    'BundleOutput',
    'PipelineContext',
    'STAGES',
    'compile_bundle',
    'resolve_stage',
    'rewrite_stage',
    'prefix_stage',
    'emit_map_stage',
    'compress_stage',
]
