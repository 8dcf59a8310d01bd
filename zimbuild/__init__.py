"""Build orchestration library: components, rules, conditions, dependency-ordered scheduling and artifact stores."""

__version__ = "0.1.0"