"""xtask - seniority-aware task tracking API."""
