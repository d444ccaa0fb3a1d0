"""Turn dispatching and speech synthesis."""
