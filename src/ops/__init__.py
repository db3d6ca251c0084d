"""Lambda entry points: the scheduled sweep and the new log group handler."""
