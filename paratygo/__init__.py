"""Paraty GO! partner-registration backend."""
