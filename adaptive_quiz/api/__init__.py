"""HTTP adapter for the adaptive quiz engine."""
