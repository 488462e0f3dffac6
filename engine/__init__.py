"""Day-transition orchestration, sessions, saves and headless runs."""
