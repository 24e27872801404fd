"""Page-level processing: scanning, tree walking, rewriting, embeds."""
