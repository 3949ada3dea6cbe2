class NQueensError(RuntimeError):
    pass

class ParameterError(NQueensError, ValueError):
    """Rejected problem parameters (N, k, worker count)."""
    pass

class ProtocolViolation(NQueensError):
    """A worker sent something the master/worker protocol does not allow."""
    pass
