import unittest

from src.testenv import resources


class ResourceBuilderTests(unittest.TestCase):
    def test_role_binding_references_role_and_service_account(self) -> None:
        binding = resources.role_binding_manifest("rolebinding-demo", "sa-demo", "ns-demo", "role-demo")
        self.assertEqual(binding["metadata"], {"name": "rolebinding-demo", "namespace": "ns-demo"})
        self.assertEqual(binding["roleRef"]["name"], "role-demo")
        self.assertEqual(binding["roleRef"]["kind"], "Role")
        self.assertEqual(
            binding["subjects"],
            [{"kind": "ServiceAccount", "name": "sa-demo", "namespace": "ns-demo"}],
        )

    def test_role_grants_enterprise_resources(self) -> None:
        role = resources.role_manifest("role-demo", "ns-demo")
        groups = [group for rule in role["rules"] for group in rule["apiGroups"]]
        self.assertIn(resources.ENTERPRISE_API_GROUP, groups)
        self.assertIn("apps", groups)

    def test_operator_deployment_wiring(self) -> None:
        deployment = resources.operator_deployment_manifest(
            "op-demo",
            "ns-demo",
            "sa-demo",
            "splunk/splunk-operator:edge",
            "splunk/splunk:8.0",
            "splunk/spark:1.0",
        )
        pod_spec = deployment["spec"]["template"]["spec"]
        container = pod_spec["containers"][0]
        env = {item["name"]: item for item in container["env"]}

        self.assertEqual(deployment["metadata"]["namespace"], "ns-demo")
        self.assertEqual(pod_spec["serviceAccountName"], "sa-demo")
        self.assertEqual(container["image"], "splunk/splunk-operator:edge")
        self.assertEqual(env["RELATED_IMAGE_SPLUNK_ENTERPRISE"]["value"], "splunk/splunk:8.0")
        self.assertEqual(env["RELATED_IMAGE_SPLUNK_SPARK"]["value"], "splunk/spark:1.0")
        self.assertEqual(
            env["WATCH_NAMESPACE"]["valueFrom"]["fieldRef"]["fieldPath"],
            "metadata.namespace",
        )
        self.assertEqual(
            deployment["spec"]["selector"]["matchLabels"],
            deployment["spec"]["template"]["metadata"]["labels"],
        )
        self.assertEqual(resources.desired_replicas(deployment), 1)

    def test_desired_replicas_defaults_to_one(self) -> None:
        self.assertEqual(resources.desired_replicas({"spec": {}}), 1)
        self.assertEqual(resources.desired_replicas({}), 1)
        self.assertEqual(resources.desired_replicas({"spec": {"replicas": 0}}), 0)

    def test_builders_return_fresh_objects(self) -> None:
        first = resources.workload_deployment_manifest("demo-web", "ns-demo", "nginx:1.25")
        second = resources.workload_deployment_manifest("demo-web", "ns-demo", "nginx:1.25")
        self.assertEqual(first, second)
        first["metadata"]["labels"]["extra"] = "x"
        self.assertNotIn("extra", second["metadata"]["labels"])
        self.assertNotIn("extra", first["spec"]["selector"]["matchLabels"])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
