from src.testenv.testenv import NAMESPACE_ACTIVE, deployment_ready, namespace_phase


def test_sandbox_namespace_is_active(testenv) -> None:
    namespace = testenv.kube_client.get("namespace", testenv.namespace)
    assert namespace_phase(namespace) == NAMESPACE_ACTIVE


def test_operator_is_rolled_out(testenv) -> None:
    operator = testenv.kube_client.get("deployment", testenv.names.operator, testenv.namespace)
    assert deployment_ready(operator, 1)
    container = operator["spec"]["template"]["spec"]["containers"][0]
    assert container["image"] == testenv.config.operator_image


def test_workload_deployment_becomes_ready(testenv) -> None:
    deployment = testenv.new_deployment("standalone")
    deployment.create(replicas=1, image="nginx:1.25-alpine")
    deployment.wait_ready()
    assert deployment.get()["metadata"]["namespace"] == testenv.namespace
