class DomainError(Exception):
    pass


class ValidationError(DomainError):
    pass


class FlowDefinitionError(DomainError):
    pass


class DuplicateAnswerError(DomainError):
    def __init__(self, step_id: str):
        super().__init__(f"Step already answered in this run: {step_id}")
        self.step_id = step_id


class FlowStateError(DomainError):
    pass
