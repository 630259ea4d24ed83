from cdnproxy.application.use_cases.resolve_attachment import ResolveAttachmentUseCase

__all__ = ["ResolveAttachmentUseCase"]
