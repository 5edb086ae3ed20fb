"""Per-position state, effect and debounce hooks."""