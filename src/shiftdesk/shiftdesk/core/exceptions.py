from __future__ import annotations

from typing import Any, Mapping, Optional


class DomainError(Exception):
    """Base exception for business rule violations.

    Every subclass carries a stable machine-readable ``code`` and the HTTP
    status the API layer answers with. None of these are retryable.
    """

    code = "common.domainError"
    http_status = 400
    default_message = "Business rule violated"

    def __init__(self, message: Optional[str] = None, **details: Any):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details: Mapping[str, Any] = details


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "common.validationError"
    default_message = "Invalid input"


class NotFoundError(DomainError):
    code = "common.notFound"
    http_status = 404
    default_message = "Resource not found"


class ConflictError(DomainError):
    code = "common.conflict"
    http_status = 409
    default_message = "Conflicting state"


class AuthorizationError(DomainError):
    """Raised when an agent acts on a resource that is not theirs."""

    code = "common.forbidden"
    http_status = 403
    default_message = "Not allowed"


class ConcurrentUpdateError(ConflictError):
    """A compare-and-set status transition lost the race to another request."""

    code = "shift.concurrentUpdate"
    default_message = "The record was changed by another request"


# Agent / shift

class AgentNotFound(NotFoundError):
    code = "shift.agentNotFound"
    default_message = "Agent not found"


class NoShiftAssigned(ValidationError):
    code = "shift.noShiftAssigned"
    default_message = "No shift is assigned to this agent"


class ShiftNotFound(NotFoundError):
    code = "shift.shiftNotFound"
    default_message = "Shift not found"


# Sessions

class AlreadyCheckedIn(ConflictError):
    code = "shift.alreadyCheckedIn"
    default_message = "Agent is already checked in"


class AlreadyCheckedOut(ConflictError):
    code = "shift.alreadyCheckedOut"
    default_message = "Agent already checked out today"


class TooLateToCheckIn(ValidationError):
    code = "shift.tooLateToCheckIn"
    default_message = "Too late to check in for this shift"


class NoActiveSession(ValidationError):
    code = "shift.noActiveSession"
    default_message = "No active session"


class CannotCheckOutOnBreak(ValidationError):
    code = "shift.cannotCheckOutOnBreak"
    default_message = "End the current break before checking out"


class SessionNotFound(NotFoundError):
    code = "shift.sessionNotFound"
    default_message = "Session not found"


class NotYourSession(AuthorizationError):
    code = "shift.notYourSession"
    default_message = "This session belongs to another agent"


# Breaks

class BreakAlreadyActive(ConflictError):
    code = "shift.breakAlreadyActive"
    default_message = "A break is already active"


class AlreadyOnBreak(BreakAlreadyActive):
    code = "shift.alreadyOnBreak"
    default_message = "Agent is already on break"


class BreakPolicyNotFound(NotFoundError):
    code = "shift.breakPolicyNotFound"
    default_message = "Break policy not found"


class BreakTooShort(ValidationError):
    code = "shift.breakTooShort"
    default_message = "Requested break is shorter than allowed"


class BreakTooLong(ValidationError):
    code = "shift.breakTooLong"
    default_message = "Requested break is longer than allowed"


class MaxBreaksReached(ValidationError):
    code = "shift.maxBreaksReached"
    default_message = "Maximum number of breaks for today reached"


class BreakCooldownActive(ValidationError):
    code = "shift.breakCooldownActive"
    default_message = "Too soon after the previous break"


class BreakTypeNotAllowed(ValidationError):
    code = "shift.breakTypeNotAllowed"
    default_message = "Break type is not allowed by the shift policy"


class BreakRequestNotFound(NotFoundError):
    code = "shift.breakRequestNotFound"
    default_message = "Break request not found"


class BreakRequestRejected(ValidationError):
    code = "shift.breakRequestRejected"
    default_message = "Break request was rejected"


class BreakRequestAlreadyPending(ConflictError):
    code = "shift.breakRequestAlreadyPending"
    default_message = "Another break request is waiting for approval"


class BreakNotApproved(ValidationError):
    code = "shift.breakNotApproved"
    default_message = "Break request is not approved"


class NoActiveBreak(ValidationError):
    code = "shift.noActiveBreak"
    default_message = "No active break"


class BreakNotPending(ValidationError):
    code = "shift.breakNotPending"
    default_message = "Break request is not pending"


class RejectionReasonRequired(ValidationError):
    code = "shift.rejectionReasonRequired"
    default_message = "A reason is required to reject a break request"
