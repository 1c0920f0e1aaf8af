"""Rules that report issues from the analyses."""
