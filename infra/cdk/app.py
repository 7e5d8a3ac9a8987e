import aws_cdk as cdk
from stacks import CoreStack

app = cdk.App()
stage = app.node.try_get_context("stage") or "dev"
CoreStack(app, f"EcoFindsCoreStack-{stage}",
    stage=stage,
    env=cdk.Environment(
        account=app.node.try_get_context("account"),
        region=app.node.try_get_context("region") or "us-west-2"
    )
)
app.synth()
