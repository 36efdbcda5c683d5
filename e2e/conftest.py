"""Real-cluster suite: ``pytest e2e --operator-image=...`` against the current kube context."""

pytest_plugins = ["src.testenv.pytest_plugin"]
