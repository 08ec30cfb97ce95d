"""NewsBrief backend: cached news feeds, article summaries, and bookmarks."""
