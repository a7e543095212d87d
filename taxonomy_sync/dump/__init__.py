"""Phase A: live reads from the Kontent.ai Management API."""
