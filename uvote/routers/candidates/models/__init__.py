from .candidates import ApplicationStatusEnum, Candidate, CandidateApplication

__all__ = ["ApplicationStatusEnum", "Candidate", "CandidateApplication"]
