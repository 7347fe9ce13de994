"""Client-side dashboard engine: fetch layer, rendering, annotation and navigation."""
