"""Editor state observed by the completion handlers."""
