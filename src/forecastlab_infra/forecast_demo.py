"""The Amazon Forecast demo template: S3 bucket, SageMaker role and notebook."""

from __future__ import annotations

from forecastlab_infra.template.expressions import (
    NO_VALUE,
    Base64,
    Equals,
    GetAtt,
    If,
    Not,
    Ref,
)
from forecastlab_infra.template.parameters import ParameterSpec, ParameterType
from forecastlab_infra.template.template import (
    OutputDeclaration,
    ResourceDeclaration,
    Rule,
    RuleAssertion,
    Template,
)

BUCKET_NAME_PATTERN = r"^[0-9a-zA-Z](?:[0-9a-zA-Z-]*[0-9a-zA-Z])?$"
DEFAULT_NOTEBOOK_NAME = "ForecastDemoLab"
DEFAULT_VOLUME_SIZE = 10
NOTEBOOK_INSTANCE_TYPE = "ml.t2.medium"
SAMPLES_REPOSITORY = "https://github.com/aws-samples/amazon-forecast-samples.git"

SAGEMAKER_MANAGED_POLICIES: tuple[str, ...] = (
    "arn:aws:iam::aws:policy/AmazonSageMakerFullAccess",
    "arn:aws:iam::aws:policy/AmazonS3FullAccess",
    "arn:aws:iam::aws:policy/AmazonForecastFullAccess",
    "arn:aws:iam::aws:policy/IAMFullAccess",
)

# JupyterLab needs the widgets extension for the interactive notebooks.
ON_START_SCRIPT = """\
#!/bin/bash
set -e

sudo -u ec2-user -i <<'EOF'
source /home/ec2-user/anaconda3/bin/activate JupyterSystemEnv
jupyter labextension install @jupyter-widgets/jupyterlab-manager
source /home/ec2-user/anaconda3/bin/deactivate
EOF
"""

PARAMETERS: tuple[ParameterSpec, ...] = (
    ParameterSpec(
        name="BucketName",
        default="",
        description=(
            "The (globally unique) name of the S3 Bucket to create, "
            "or blank to set a name automatically."
        ),
        min_length=3,
        max_length=63,
        allowed_pattern=BUCKET_NAME_PATTERN,
        constraint_description=(
            "Can include numbers, letters, and hyphens (-). "
            "Must not start or end with a hyphen."
        ),
    ),
    ParameterSpec(
        name="NotebookName",
        default=DEFAULT_NOTEBOOK_NAME,
        description="The name of the SageMaker notebook instance.",
    ),
    ParameterSpec(
        name="VolumeSize",
        type=ParameterType.NUMBER,
        default=DEFAULT_VOLUME_SIZE,
        integer=True,
        min_value=5,
        max_value=16384,
        description="The size of the EBS volume in GB.",
        constraint_description="Must be an integer between 5 (GB) and 16384 (16 TB).",
    ),
    ParameterSpec(
        name="UseVPC",
        allowed_values=("true", "false"),
        description="Whether to attach the notebook to an existing VPC.",
    ),
    # Strings rather than typed EC2 ids so blank values are accepted.
    ParameterSpec(
        name="SecurityGroup",
        description="The security group to provide the notebook access within the VPC.",
    ),
    ParameterSpec(
        name="PrivateSubnet",
        description="The ID of the VPC subnet the notebook's ML compute instance connects from.",
    ),
)

CONDITIONS = {
    "ExplicitBucketName": Not(Equals(Ref("BucketName"), "")),
    "UseOwnVPC": Equals(Ref("UseVPC"), "true"),
}

RULES: tuple[Rule, ...] = (
    Rule(
        name="VpcSettings",
        condition=Equals(Ref("UseVPC"), "true"),
        assertions=(
            RuleAssertion(
                test=Not(Equals(Ref("SecurityGroup"), "")),
                description="SecurityGroup is required when UseVPC is true.",
            ),
            RuleAssertion(
                test=Not(Equals(Ref("PrivateSubnet"), "")),
                description="PrivateSubnet is required when UseVPC is true.",
            ),
        ),
    ),
)

RESOURCES: tuple[ResourceDeclaration, ...] = (
    ResourceDeclaration(
        name="S3Bucket",
        type="AWS::S3::Bucket",
        properties={
            "BucketName": If("ExplicitBucketName", Ref("BucketName"), NO_VALUE),
            "BucketEncryption": {
                "ServerSideEncryptionConfiguration": [
                    {"ServerSideEncryptionByDefault": {"SSEAlgorithm": "AES256"}},
                ],
            },
            "PublicAccessBlockConfiguration": {
                "BlockPublicAcls": True,
                "IgnorePublicAcls": True,
                "BlockPublicPolicy": True,
                "RestrictPublicBuckets": True,
            },
        },
    ),
    ResourceDeclaration(
        name="SageMakerIamRole",
        type="AWS::IAM::Role",
        properties={
            "AssumeRolePolicyDocument": {
                "Version": "2012-10-17",
                "Statement": [
                    {
                        "Effect": "Allow",
                        "Principal": {"Service": "sagemaker.amazonaws.com"},
                        "Action": "sts:AssumeRole",
                    },
                ],
            },
            "Path": "/",
            "ManagedPolicyArns": list(SAGEMAKER_MANAGED_POLICIES),
        },
    ),
    ResourceDeclaration(
        name="NotebookConfig",
        type="AWS::SageMaker::NotebookInstanceLifecycleConfig",
        properties={
            "OnStart": [{"Content": Base64(ON_START_SCRIPT)}],
        },
    ),
    ResourceDeclaration(
        name="NotebookInstance",
        type="AWS::SageMaker::NotebookInstance",
        properties={
            "InstanceType": NOTEBOOK_INSTANCE_TYPE,
            "NotebookInstanceName": Ref("NotebookName"),
            "LifecycleConfigName": GetAtt("NotebookConfig", "NotebookInstanceLifecycleConfigName"),
            "RoleArn": GetAtt("SageMakerIamRole", "Arn"),
            "VolumeSizeInGB": Ref("VolumeSize"),
            "DefaultCodeRepository": SAMPLES_REPOSITORY,
            "SecurityGroupIds": If("UseOwnVPC", [Ref("SecurityGroup")], NO_VALUE),
            "SubnetId": If("UseOwnVPC", Ref("PrivateSubnet"), NO_VALUE),
        },
    ),
)

OUTPUTS: tuple[OutputDeclaration, ...] = (
    OutputDeclaration(
        name="S3Bucket",
        value=Ref("S3Bucket"),
        description="S3 Bucket for object storage",
    ),
    OutputDeclaration(
        name="NotebookInstanceName",
        value=GetAtt("NotebookInstance", "NotebookInstanceName"),
        description="Name of the SageMaker notebook instance",
    ),
    OutputDeclaration(
        name="SageMakerRoleArn",
        value=GetAtt("SageMakerIamRole", "Arn"),
        description="Execution role assumed by the notebook",
    ),
)


def forecast_demo_template() -> Template:
    """Return the template for the Amazon Forecast demo environment."""
    return Template(
        description=(
            "Creates an S3 Bucket, IAM Policies, and SageMaker Notebook "
            "to work with Amazon Forecast."
        ),
        parameters=PARAMETERS,
        conditions=CONDITIONS,
        rules=RULES,
        resources=RESOURCES,
        outputs=OUTPUTS,
    )
