"""TaskQuest Test Suite

This package contains all tests for the TaskQuest task manager.

Test Organization:
  - unit/: Unit tests for individual components
    - tasks/: task mutations, statistics, AI decomposition
    - gamification/: points, streaks, challenges, achievements
    - state/: persistence, migration, the application store
    - ai/: suggestion calls and the debounced form suggester
    - automation/: toast notifications, maintenance sweeps
  - integration/: multi-day flows over a real SQLite store
"""
