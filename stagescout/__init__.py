"""StageScout backend: casting and creative networking with realtime chat."""
