"""QR ticket check-in console."""
