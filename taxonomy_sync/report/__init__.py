"""Phase C: HTML change report. NO LIVE API CALLS."""
