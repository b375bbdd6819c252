"""Pure form logic: visibility rules, answer validation, quiz scoring, scheduling, analytics, export."""
