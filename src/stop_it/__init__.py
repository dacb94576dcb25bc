"""Browser activity monitor and Pomodoro timer."""
