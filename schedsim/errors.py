class SimulationError(Exception):
    """Base error of the simulator"""
    pass


class ConfigurationError(SimulationError, ValueError):
    """Invalid construction-time configuration"""
    pass


class InvariantViolation(SimulationError):
    """Broken internal invariant; the run must stop"""
    pass


class IllegalTransitionError(InvariantViolation):
    """Process state change not allowed by the state machine"""
    pass
