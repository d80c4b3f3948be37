import pytest

from umbro_ops.errors import OpError
from umbro_ops.role_arns import vercel_role_arns
from umbro_ops.stages import Stage


class FakeSession:
    def __init__(self, resources, account="123456789012"):
        self._resources = resources
        self._account = account
        self.clients: list[str] = []

    def client(self, name):
        self.clients.append(name)
        session = self

        if name == "cloudformation":

            class FakeCloudFormation:
                def describe_stack_resources(self, StackName):
                    assert StackName == "UmbroVercelOIDC"
                    return {"StackResources": session._resources}

            return FakeCloudFormation()

        if name == "sts":

            class FakeSts:
                def get_caller_identity(self):
                    return {"Account": session._account}

            return FakeSts()

        raise AssertionError(f"unexpected client {name}")


def _role(logical_id: str, physical_id: str) -> dict:
    return {
        "LogicalResourceId": logical_id,
        "PhysicalResourceId": physical_id,
        "ResourceType": "AWS::IAM::Role",
    }


def test_vercel_role_arns_lists_deployed_stage_roles() -> None:
    session = FakeSession(
        [
            _role("UmbroVercelDeployAlpha1A2B3C4D", "VercelDeployAlpha"),
            _role("UmbroVercelDeployProductionE5F6", "VercelDeployProduction"),
            _role("CustomAWSCDKOpenIdConnectProviderRole", "UmbroVercelOIDC-CustomRole-XYZ"),
            {
                "LogicalResourceId": "vercelProvider",
                "PhysicalResourceId": "arn:aws:iam::123456789012:oidc-provider/oidc.vercel.com/acme",
                "ResourceType": "Custom::AWSCDKOpenIdConnectProvider",
            },
        ]
    )

    roles = vercel_role_arns(
        session,
        stack="UmbroVercelOIDC",
        stages=[Stage.ALPHA, Stage.BETA, Stage.PRODUCTION],
    )

    assert roles == [
        {
            "stage": "Alpha",
            "roleName": "VercelDeployAlpha",
            "roleArn": "arn:aws:iam::123456789012:role/VercelDeployAlpha",
        },
        {
            "stage": "Production",
            "roleName": "VercelDeployProduction",
            "roleArn": "arn:aws:iam::123456789012:role/VercelDeployProduction",
        },
    ]


def test_vercel_role_arns_without_roles_is_op_error() -> None:
    session = FakeSession([_role("CustomAWSCDKOpenIdConnectProviderRole", "some-role")])

    with pytest.raises(OpError) as exc:
        vercel_role_arns(session, stack="UmbroVercelOIDC", stages=list(Stage))

    assert "no Vercel OIDC roles" in str(exc.value)
    assert "sts" not in session.clients
