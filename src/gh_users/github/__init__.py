"""GitHub REST client used as the profile source."""
