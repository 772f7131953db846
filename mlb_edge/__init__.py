"""MLB Edge: data collection planning and game scoring for MLB betting insights."""
