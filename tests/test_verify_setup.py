from umbro_ops.config import VercelEnvConfig
from umbro_ops.errors import OpError
from umbro_ops.verify_setup import FAIL, PASS, WARN, summarize, verify_stacks, verify_vercel


def _cfg() -> VercelEnvConfig:
    return VercelEnvConfig(
        token="tok",
        project_id="prj_1",
        team_id="team_1",
        targets=("preview", "development"),
    )


class FakeSession:
    def __init__(self, stacks):
        self._stacks = stacks

    def client(self, name):
        stacks = self._stacks

        class FakeCloudFormation:
            def describe_stacks(self, StackName):
                if StackName not in stacks:
                    raise RuntimeError("does not exist")
                outputs = [{"OutputKey": k, "OutputValue": "v"} for k in stacks[StackName]]
                return {"Stacks": [{"Outputs": outputs}]}

        assert name == "cloudformation"
        return FakeCloudFormation()


class FakeVercel:
    def __init__(self, keys, fail=False):
        self._keys = keys
        self._fail = fail

    def get_project(self, project_id):
        if self._fail:
            raise OpError("vercel project get failed: status=403 body={}")
        return {"id": project_id, "name": "umbro"}

    def list_env_keys(self, project_id):
        return list(self._keys)


def _by_check(results):
    return {r.check: r.status for r in results}


def test_verify_stacks_passes_when_outputs_exist() -> None:
    session = FakeSession(
        {
            "UmbroStack": ["AccountId", "Region", "UsersTableName", "ServiceTokensTableName"],
            "UmbroVercelOIDC": ["VercelDeployAlphaArn"],
        }
    )

    results = verify_stacks(session, _cfg())

    assert {r.status for r in results} == {PASS}
    assert _by_check(results)["Output: VercelDeployAlphaArn"] == PASS


def test_verify_stacks_reports_missing_stack_and_outputs() -> None:
    session = FakeSession({"UmbroStack": ["AccountId", "Region"]})

    checks = _by_check(verify_stacks(session, _cfg()))

    assert checks["UmbroStack"] == PASS
    assert checks["Output: UsersTableName"] == FAIL
    assert checks["Output: ServiceTokensTableName"] == FAIL
    assert checks["UmbroVercelOIDC"] == FAIL


def test_verify_vercel_warns_for_missing_env_keys() -> None:
    results = verify_vercel(FakeVercel(["AWS_REGION", "AWS_ROLE_ARN"]), _cfg())

    checks = _by_check(results)
    assert checks["Vercel project access"] == PASS
    assert checks["Vercel env: AWS_REGION"] == PASS
    assert checks["Vercel env: NEXTAUTH_SECRET"] == WARN
    assert FAIL not in checks.values()


def test_verify_vercel_fails_without_access() -> None:
    results = verify_vercel(FakeVercel([], fail=True), _cfg())

    assert [(r.check, r.status) for r in results] == [("Vercel access", FAIL)]


def test_summarize_counts_and_ok_flag() -> None:
    ok = summarize(verify_vercel(FakeVercel(["AWS_REGION"]), _cfg()))
    failed = summarize(verify_vercel(FakeVercel([], fail=True), _cfg()))

    assert ok["ok"] is True
    assert ok["passed"] == 2
    assert ok["warnings"] == 6
    assert failed["ok"] is False
    assert failed["failed"] == 1
    assert failed["results"][0]["status"] == FAIL
