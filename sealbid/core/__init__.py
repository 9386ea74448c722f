"""Auction core: configuration, collaborators, auction protocol and registry."""
