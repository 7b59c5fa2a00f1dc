"""Core building blocks: configuration, errors, cookies, crypto and login flows."""
