"""Shared configuration, logging and persistence for the leadcoach services."""
