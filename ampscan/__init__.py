"""ampscan — AMP scannable URL correlation service."""
