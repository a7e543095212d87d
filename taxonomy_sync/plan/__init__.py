"""Phase B: term index and asset remap planning. NO LIVE API CALLS."""
