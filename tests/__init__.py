# Tests for the MySQL result-set driver
