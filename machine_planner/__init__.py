"""Planning hebdomadaire des machines / Weekly machine schedule planner."""
