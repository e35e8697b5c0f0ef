"""Internal building blocks of the rule-evaluation core."""
