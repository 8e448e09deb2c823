"""Front desk reservation engine: availability, pricing and booking workflow."""
