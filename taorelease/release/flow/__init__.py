"""Step sequencing, confirmation gate and conflict handling."""
