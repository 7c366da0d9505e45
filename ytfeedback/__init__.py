"""Video feedback evaluation service: model-response normalization and storage."""
