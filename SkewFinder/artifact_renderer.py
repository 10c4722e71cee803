"""
┌──────────────────────────────────────────────────────────────────────────────┐
│ Artifact Renderer - Skew curve to raster image                               │
├──────────────────────────────────────────────────────────────────────────────┤
│ Author: Dr. Venkata Rajesh Yella | License: MIT | Version: 2025.1            │
└──────────────────────────────────────────────────────────────────────────────┘

Draws a skew array as a line plot with matplotlib's Agg canvas. Figures are
built with the object API (``matplotlib.figure.Figure``) rather than pyplot,
so renders running on different worker threads never share pyplot's global
figure state.
"""
# ═══════════════════════════════════════════════════════════════════════════════
# IMPORTS
# ═══════════════════════════════════════════════════════════════════════════════
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union

import matplotlib
matplotlib.use('Agg')  # non-interactive backend
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
import numpy as np

from SkewFinder.config.visualization import SKEW_PLOT_CONFIG
from SkewFinder.errors import RenderError
from SkewFinder.skew_engine import skew_extremes

logger = logging.getLogger(__name__)


def _plot_points(skew: Sequence[int], max_points: Optional[int]):
    """X/Y arrays for plotting, strided down to about ``max_points`` samples."""
    y = np.asarray(skew)
    x = np.arange(len(y))
    if max_points and len(y) > max_points:
        step = int(np.ceil(len(y) / max_points))
        # Always keep the last point so the curve ends where the genome does
        idx = np.unique(np.append(np.arange(0, len(y), step), len(y) - 1))
        return x[idx], y[idx]
    return x, y


class ArtifactRenderer:
    """
    Renders skew arrays to image files.

    Usage:
        renderer = ArtifactRenderer()
        renderer.render(skew, "plots/skew_123.png")

        batch_renderer = ArtifactRenderer(BATCH_PLOT_CONFIG)
        batch_renderer.render(skew, "plots/escherichia_coli.png", name="escherichia_coli")
    """

    def __init__(self, plot_config: Optional[Dict[str, Any]] = None):
        self.plot_config = {**SKEW_PLOT_CONFIG, **(plot_config or {})}

    def build_figure(self, skew: Sequence[int], name: Optional[str] = None) -> Figure:
        """Return a matplotlib Figure of the skew curve (not saved)."""
        cfg = self.plot_config
        fig = Figure(figsize=(cfg['width_in'], cfg['height_in']), dpi=cfg['dpi'])
        FigureCanvasAgg(fig)
        ax = fig.add_subplot(1, 1, 1)

        x, y = _plot_points(skew, cfg.get('max_points'))
        ax.plot(x, y, color=cfg['line_color'], linewidth=cfg['line_width'])

        if cfg.get('mark_minimum') and len(skew) > 0:
            extremes = skew_extremes(skew)
            ax.scatter([extremes['min_position']], [extremes['min_skew']],
                       color=cfg['minimum_color'], zorder=3,
                       label=f"min skew {extremes['min_skew']} @ {extremes['min_position']:,}")
            ax.legend(loc='best', frameon=False)

        ax.set_title(cfg['title'].format(name=name or ''))
        ax.set_xlabel(cfg['xlabel'])
        ax.set_ylabel(cfg['ylabel'])
        ax.grid(True, alpha=0.3)
        fig.tight_layout()
        return fig

    def render(
        self,
        skew: Sequence[int],
        path: Union[str, Path],
        name: Optional[str] = None,
        image_format: Optional[str] = None,
    ) -> Path:
        """
        Write the skew plot to ``path``.

        Args:
            skew: Skew array to draw
            path: Target image file
            name: Record name substituted into the title template
            image_format: Raster format; defaults to the file suffix

        Returns:
            Path that was written

        Raises:
            RenderError: The figure could not be drawn or saved
        """
        path = Path(path)
        image_format = image_format or path.suffix.lstrip('.') or 'png'
        try:
            fig = self.build_figure(skew, name=name)
            fig.savefig(path, format=image_format)
        except (OSError, ValueError, RuntimeError) as e:
            raise RenderError(f"Failed to render skew plot to {path}: {e}") from e

        logger.debug(f"Rendered {len(skew):,}-point skew plot to {path}")
        return path

    def render_atomic(
        self,
        skew: Sequence[int],
        path: Union[str, Path],
        name: Optional[str] = None,
        image_format: Optional[str] = None,
    ) -> Path:
        """
        Render to a hidden temp file beside ``path`` and rename it into place.

        Readers of ``path`` see either the previous file or the complete new
        one. On failure the temp file is removed and ``path`` is untouched.

        Raises:
            RenderError: Rendering or the final rename failed
        """
        path = Path(path)
        image_format = image_format or path.suffix.lstrip('.') or 'png'
        temp: Optional[Path] = None
        try:
            fd, temp_name = tempfile.mkstemp(prefix=f".{path.stem}.", suffix=path.suffix, dir=path.parent)
            os.close(fd)
            temp = Path(temp_name)
            self.render(skew, temp, name=name, image_format=image_format)
            os.chmod(temp, 0o644)
            os.replace(temp, path)
            temp = None
        except OSError as e:
            raise RenderError(f"Failed to publish skew plot to {path}: {e}") from e
        finally:
            if temp is not None and temp.exists():
                temp.unlink()
        return path
