"""Music catalog domain: tracks served from the public music host."""
