"""Work-order domain: priority model, due-date math, and the remote API client."""
