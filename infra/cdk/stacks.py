from __future__ import annotations
from aws_cdk import (
    Stack, Duration, CfnOutput, RemovalPolicy,
    aws_dynamodb as ddb,
    aws_cognito as cognito,
    aws_iam as iam,
    aws_lambda as _lambda,
    aws_apigateway as apigw,
)
from constructs import Construct
from aws_cdk.aws_lambda_python_alpha import PythonLayerVersion

API_PREFIX = "make-server-d588a8d5"


class CoreStack(Stack):
    def __init__(self, scope: Construct, _id: str, *, stage: str = "dev", **kwargs):
        super().__init__(scope, _id, **kwargs)

        kv = ddb.Table(self, "KeyValue",
            partition_key=ddb.Attribute(name="pk", type=ddb.AttributeType.STRING),
            billing_mode=ddb.BillingMode.PAY_PER_REQUEST,
            point_in_time_recovery=True,
            removal_policy=RemovalPolicy.RETAIN)

        pool = cognito.UserPool(self, "Users",
            self_sign_up_enabled=False,
            sign_in_aliases=cognito.SignInAliases(email=True),
            standard_attributes=cognito.StandardAttributes(
                email=cognito.StandardAttribute(required=True, mutable=True),
                fullname=cognito.StandardAttribute(required=False, mutable=True),
            ),
            password_policy=cognito.PasswordPolicy(min_length=6, require_symbols=False,
                                                   require_uppercase=False, require_digits=False),
            removal_policy=RemovalPolicy.RETAIN)
        client = pool.add_client("WebClient",
            auth_flows=cognito.AuthFlow(user_password=True, user_srp=True),
            generate_secret=False)

        role = iam.Role(self, "EcoFindsLambdaRole",
            assumed_by=iam.ServicePrincipal("lambda.amazonaws.com"),
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name("service-role/AWSLambdaBasicExecutionRole"),
            ])
        role.add_to_policy(iam.PolicyStatement(
            actions=["cognito-idp:AdminCreateUser", "cognito-idp:AdminSetUserPassword"],
            resources=[pool.user_pool_arn]))

        deps_layer = PythonLayerVersion(
            self, "AppDepsLayer",
            entry="infra/layer",
            compatible_runtimes=[_lambda.Runtime.PYTHON_3_11]
        )

        env = {
            "DDB_TABLE_KV": kv.table_name,
            "KV_BACKEND": "dynamodb",
            "COGNITO_USER_POOL_ID": pool.user_pool_id,
            "COGNITO_CLIENT_ID": client.user_pool_client_id,
            "API_PREFIX": f"/{API_PREFIX}",
            "STAGE": stage,
            "SEED_ENABLED": "false" if stage == "prod" else "true",
            "LOG_LEVEL": "INFO",
        }

        fn_api = _lambda.Function(self, "ApiFn",
            runtime=_lambda.Runtime.PYTHON_3_11,
            handler="lambdas.api.index.handler",
            code=_lambda.Code.from_asset(".", exclude=[
                "infra", "tests", ".git", ".venv", "cdk.out", "**/__pycache__", "*.md",
            ]),
            memory_size=512, timeout=Duration.seconds(15),
            environment=env, role=role, layers=[deps_layer])

        kv.grant_read_write_data(fn_api)

        api = apigw.RestApi(self, "EcoFindsApi",
            rest_api_name="EcoFinds Marketplace API",
            deploy_options=apigw.StageOptions(stage_name=stage),
            default_cors_preflight_options=apigw.CorsOptions(
                allow_origins=apigw.Cors.ALL_ORIGINS,
                allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
                allow_headers=["Content-Type", "Authorization"],
            ))

        api.root.add_resource(API_PREFIX).add_proxy(
            default_integration=apigw.LambdaIntegration(fn_api), any_method=True)

        CfnOutput(self, "ApiUrl", value=f"{api.url}{API_PREFIX}")
        CfnOutput(self, "UserPoolId", value=pool.user_pool_id)
        CfnOutput(self, "UserPoolClientId", value=client.user_pool_client_id)
        CfnOutput(self, "KvTable", value=kv.table_name)
