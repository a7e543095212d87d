"""Phase D: confirmation gate and live writes to the target environment."""
