"""
Visualization configuration for GCSkewFinder skew plots.

Two plot profiles are defined:
- SKEW_PLOT_CONFIG: wide single-genome plot served for cached requests
- BATCH_PLOT_CONFIG: small square plot written per batch record
"""

# ==================== SINGLE-SOURCE SKEW PLOT ====================
SKEW_PLOT_CONFIG = {
    'title': 'G-C Skew Along The Genome',
    'xlabel': 'Position in Genome (bp)',
    'ylabel': 'Skew (G-count minus C-count)',
    'width_in': 12.5,
    'height_in': 5.0,
    'dpi': 100,
    'line_color': '#2D4DF0',
    'line_width': 1.0,
    'mark_minimum': False,      # Draw a marker at the first minimum-skew position
    'minimum_color': '#D62728',
    'max_points': 200_000,      # Curves longer than this are strided before plotting
}

# ==================== PER-RECORD BATCH PLOT ====================
BATCH_PLOT_CONFIG = {
    **SKEW_PLOT_CONFIG,
    'title': 'Skew array for {name}',
    'xlabel': 'Genome position',
    'ylabel': 'Skew',
    'width_in': 4.0,
    'height_in': 4.0,
}
