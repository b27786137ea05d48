"""SpeakFree services: abuse scoring, moderation gate and guided intake."""
