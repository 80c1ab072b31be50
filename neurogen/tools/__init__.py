from neurogen.tools.fixtures import FixtureProvider, FixtureSummary

__all__ = ["FixtureProvider", "FixtureSummary"]
