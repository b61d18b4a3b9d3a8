"""
Application Layer for the workout session core.

This package contains:
- ports/: Abstract interfaces for every external collaborator
- use_cases/: Session initialization and completion
- services/: Long-lived session services (autosave, run recording, stopwatch)
  and the WorkoutSession that owns them
"""
