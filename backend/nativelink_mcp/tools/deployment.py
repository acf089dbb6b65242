"""Deployment manifests for running Nativelink on common platforms."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Callable, Literal

from pydantic import Field, StrictStr

from ..mcp.registry import RegisteredTool, ToolContext
from ..mcp.validation import ToolInput

TOOL_NAME = "generate-deployment-config"

Platform = Literal["kubernetes", "docker", "aws", "gcp", "azure"]
Scale = Literal["small", "medium", "large", "enterprise"]

IMAGE = "ghcr.io/tracemachina/nativelink:latest"
GRPC_PORT = 50051
CAS_PORT = 50052
METRICS_PORT = 9090


class DeploymentInput(ToolInput):
    platform: Platform = Field(description="Deployment platform")
    scale: Scale = Field(description="Deployment scale")
    features: list[StrictStr] = Field(
        default=[],
        description="Features to enable: monitoring, autoscaling, high_availability",
    )


@dataclass(frozen=True)
class ScaleProfile:
    replicas: int
    cpu: int
    memory_gb: int
    aws_instance_type: str
    gcp_machine_type: str
    azure_vm_size: str

    @property
    def aws_cpu_units(self) -> int:
        return self.cpu * 1024

    @property
    def aws_memory_mb(self) -> int:
        return self.memory_gb * 1024


SCALE_PROFILES: dict[str, ScaleProfile] = {
    "small": ScaleProfile(1, 2, 4, "t3.large", "n2-standard-2", "Standard_D2s_v3"),
    "medium": ScaleProfile(3, 4, 8, "t3.xlarge", "n2-standard-4", "Standard_D4s_v3"),
    "large": ScaleProfile(5, 8, 16, "m5.2xlarge", "n2-standard-8", "Standard_D8s_v3"),
    "enterprise": ScaleProfile(10, 16, 32, "m5.4xlarge", "n2-standard-16", "Standard_D16s_v3"),
}


@dataclass(frozen=True)
class Features:
    monitoring: bool
    autoscaling: bool
    high_availability: bool

    @classmethod
    def from_list(cls, features: list[str]) -> "Features":
        enabled = set(features)
        return cls(
            monitoring="monitoring" in enabled,
            autoscaling="autoscaling" in enabled,
            high_availability="high_availability" in enabled,
        )


def kubernetes_config(profile: ScaleProfile, features: Features) -> str:
    lines = [
        "# Nativelink Kubernetes Deployment",
        "apiVersion: apps/v1",
        "kind: Deployment",
        "metadata:",
        "  name: nativelink",
        "  namespace: build-cache",
        "spec:",
        f"  replicas: {profile.replicas}",
        "  selector:",
        "    matchLabels:",
        "      app: nativelink",
        "  template:",
        "    metadata:",
        "      labels:",
        "        app: nativelink",
        "    spec:",
        "      containers:",
        "      - name: nativelink",
        f"        image: {IMAGE}",
        "        ports:",
        f"        - containerPort: {GRPC_PORT}",
        "          name: grpc",
        f"        - containerPort: {CAS_PORT}",
        "          name: cas",
    ]
    if features.monitoring:
        lines += [f"        - containerPort: {METRICS_PORT}", "          name: metrics"]
    lines += [
        "        resources:",
        "          limits:",
        f'            memory: "{profile.memory_gb}Gi"',
        f'            cpu: "{profile.cpu}"',
        "          requests:",
        f'            memory: "{profile.memory_gb}Gi"',
        f'            cpu: "{profile.cpu}"',
        "        env:",
        "        - name: NATIVELINK_CONFIG",
        "          value: /config/config.json5",
        "        volumeMounts:",
        "        - name: config",
        "          mountPath: /config",
    ]
    if features.high_availability:
        lines += [
            "        livenessProbe:",
            "          grpc:",
            f"            port: {GRPC_PORT}",
            "          initialDelaySeconds: 30",
            "          periodSeconds: 10",
            "        readinessProbe:",
            "          grpc:",
            f"            port: {GRPC_PORT}",
            "          initialDelaySeconds: 5",
            "          periodSeconds: 5",
        ]
    lines += [
        "      volumes:",
        "      - name: config",
        "        configMap:",
        "          name: nativelink-config",
        "---",
        "apiVersion: v1",
        "kind: Service",
        "metadata:",
        "  name: nativelink",
        "  namespace: build-cache",
        "spec:",
        "  selector:",
        "    app: nativelink",
        "  ports:",
        f"  - port: {GRPC_PORT}",
        f"    targetPort: {GRPC_PORT}",
        "    name: grpc",
        f"  - port: {CAS_PORT}",
        f"    targetPort: {CAS_PORT}",
        "    name: cas",
    ]
    if features.monitoring:
        lines += [
            f"  - port: {METRICS_PORT}",
            f"    targetPort: {METRICS_PORT}",
            "    name: metrics",
        ]
    lines.append("  type: LoadBalancer")
    if features.autoscaling:
        lines += [
            "---",
            "apiVersion: autoscaling/v2",
            "kind: HorizontalPodAutoscaler",
            "metadata:",
            "  name: nativelink-hpa",
            "  namespace: build-cache",
            "spec:",
            "  scaleTargetRef:",
            "    apiVersion: apps/v1",
            "    kind: Deployment",
            "    name: nativelink",
            f"  minReplicas: {profile.replicas}",
            f"  maxReplicas: {profile.replicas * 3}",
            "  metrics:",
            "  - type: Resource",
            "    resource:",
            "      name: cpu",
            "      target:",
            "        type: Utilization",
            "        averageUtilization: 70",
            "  - type: Resource",
            "    resource:",
            "      name: memory",
            "      target:",
            "        type: Utilization",
            "        averageUtilization: 80",
        ]
    return "\n".join(lines)


def docker_config(profile: ScaleProfile, features: Features) -> str:
    lines = [
        "# Nativelink Docker Compose Configuration",
        "version: '3.8'",
        "",
        "services:",
        "  nativelink:",
        f"    image: {IMAGE}",
        "    container_name: nativelink",
        "    ports:",
        f'      - "{GRPC_PORT}:{GRPC_PORT}"  # gRPC',
        f'      - "{CAS_PORT}:{CAS_PORT}"  # CAS',
    ]
    if features.monitoring:
        lines.append(f'      - "{METRICS_PORT}:{METRICS_PORT}"    # Metrics')
    lines += [
        "    volumes:",
        "      - ./config.json5:/config/config.json5:ro",
        "      - nativelink-data:/data",
        "    environment:",
        "      - NATIVELINK_CONFIG=/config/config.json5",
        "      - RUST_LOG=info",
    ]
    if features.high_availability:
        lines += [
            "    healthcheck:",
            f'      test: ["CMD", "grpc_health_probe", "-addr=:{GRPC_PORT}"]',
            "      interval: 30s",
            "      timeout: 10s",
            "      retries: 3",
            "      start_period: 40s",
        ]
    lines += [
        "    deploy:",
        "      resources:",
        "        limits:",
        f"          cpus: '{profile.cpu}'",
        f"          memory: {profile.memory_gb}G",
        "        reservations:",
        f"          cpus: '{profile.cpu / 2:g}'",
        f"          memory: {profile.memory_gb // 2}G",
        "    restart: unless-stopped",
        "",
        "volumes:",
        "  nativelink-data:",
        "    driver: local",
        "",
        "networks:",
        "  default:",
        "    name: nativelink-network",
    ]
    return "\n".join(lines)


def aws_config(profile: ScaleProfile, features: Features) -> str:
    lines = [
        "# Nativelink AWS CloudFormation Template",
        "AWSTemplateFormatVersion: '2010-09-09'",
        "Description: 'Nativelink Deployment on AWS'",
        "",
        "Parameters:",
        "  VpcId:",
        "    Type: AWS::EC2::VPC::Id",
        "    Description: VPC for Nativelink deployment",
        "",
        "  SubnetIds:",
        "    Type: List<AWS::EC2::Subnet::Id>",
        "    Description: Subnets for Nativelink deployment",
        "",
        "Resources:",
        "  NativelinkCluster:",
        "    Type: AWS::ECS::Cluster",
        "    Properties:",
        "      ClusterName: nativelink-cluster",
    ]
    if features.monitoring:
        lines += [
            "      ClusterSettings:",
            "        - Name: containerInsights",
            "          Value: enabled",
        ]
    lines += [
        "",
        "  NativelinkTaskDefinition:",
        "    Type: AWS::ECS::TaskDefinition",
        "    Properties:",
        "      Family: nativelink",
        "      NetworkMode: awsvpc",
        "      RequiresCompatibilities:",
        "        - FARGATE",
        f"      Cpu: '{profile.aws_cpu_units}'",
        f"      Memory: '{profile.aws_memory_mb}'",
        "      ContainerDefinitions:",
        "        - Name: nativelink",
        f"          Image: {IMAGE}",
        "          PortMappings:",
        f"            - ContainerPort: {GRPC_PORT}",
        "              Protocol: tcp",
        f"            - ContainerPort: {CAS_PORT}",
        "              Protocol: tcp",
    ]
    if features.monitoring:
        lines += [f"            - ContainerPort: {METRICS_PORT}", "              Protocol: tcp"]
    lines += [
        "          Environment:",
        "            - Name: NATIVELINK_CONFIG",
        "              Value: /config/config.json5",
        "          LogConfiguration:",
        "            LogDriver: awslogs",
        "            Options:",
        "              awslogs-group: /ecs/nativelink",
        "              awslogs-region: !Ref AWS::Region",
        "              awslogs-stream-prefix: nativelink",
        "",
        "  NativelinkService:",
        "    Type: AWS::ECS::Service",
        "    Properties:",
        "      ServiceName: nativelink-service",
        "      Cluster: !Ref NativelinkCluster",
        "      TaskDefinition: !Ref NativelinkTaskDefinition",
        f"      DesiredCount: {profile.replicas}",
        "      LaunchType: FARGATE",
        "      NetworkConfiguration:",
        "        AwsvpcConfiguration:",
        "          Subnets: !Ref SubnetIds",
        "          SecurityGroups:",
        "            - !Ref NativelinkSecurityGroup",
    ]
    if features.autoscaling:
        lines += [
            "",
            "  NativelinkScalableTarget:",
            "    Type: AWS::ApplicationAutoScaling::ScalableTarget",
            "    Properties:",
            "      ServiceNamespace: ecs",
            "      ScalableDimension: ecs:service:DesiredCount",
            "      ResourceId: !Join ['/', [service, !Ref NativelinkCluster, !GetAtt NativelinkService.Name]]",
            f"      MinCapacity: {profile.replicas}",
            f"      MaxCapacity: {profile.replicas * 3}",
            "",
            "  NativelinkScalingPolicy:",
            "    Type: AWS::ApplicationAutoScaling::ScalingPolicy",
            "    Properties:",
            "      PolicyName: nativelink-cpu-target",
            "      PolicyType: TargetTrackingScaling",
            "      ScalingTargetId: !Ref NativelinkScalableTarget",
            "      TargetTrackingScalingPolicyConfiguration:",
            "        TargetValue: 70",
            "        PredefinedMetricSpecification:",
            "          PredefinedMetricType: ECSServiceAverageCPUUtilization",
        ]
    lines += [
        "",
        "  NativelinkSecurityGroup:",
        "    Type: AWS::EC2::SecurityGroup",
        "    Properties:",
        "      GroupDescription: Security group for Nativelink",
        "      VpcId: !Ref VpcId",
        "      SecurityGroupIngress:",
    ]
    ports = [GRPC_PORT, CAS_PORT] + ([METRICS_PORT] if features.monitoring else [])
    for port in ports:
        lines += [
            "        - IpProtocol: tcp",
            f"          FromPort: {port}",
            f"          ToPort: {port}",
            "          CidrIp: 0.0.0.0/0",
        ]
    lines += [
        "",
        "Outputs:",
        "  ClusterName:",
        "    Value: !Ref NativelinkCluster",
        "  ServiceName:",
        "    Value: !GetAtt NativelinkService.Name",
    ]
    return "\n".join(lines)


def gcp_config(profile: ScaleProfile, features: Features) -> str:
    metrics_flag = [f"                  -p {METRICS_PORT}:{METRICS_PORT} \\"] if features.monitoring else []
    lines = [
        "# Nativelink Google Cloud Deployment Manager",
        "resources:",
        "- name: nativelink-instance-template",
        "  type: compute.v1.instanceTemplate",
        "  properties:",
        "    properties:",
        f"      machineType: {profile.gcp_machine_type}",
        "      disks:",
        "      - deviceName: boot",
        "        type: PERSISTENT",
        "        boot: true",
        "        autoDelete: true",
        "        initializeParams:",
        "          sourceImage: projects/cos-cloud/global/images/family/cos-stable",
        "      networkInterfaces:",
        "      - network: global/networks/default",
        "        accessConfigs:",
        "        - name: External NAT",
        "          type: ONE_TO_ONE_NAT",
        "      metadata:",
        "        items:",
        "        - key: user-data",
        "          value: |",
        "            #cloud-config",
        "            write_files:",
        "            - path: /etc/systemd/system/nativelink.service",
        "              permissions: 0644",
        "              content: |",
        "                [Unit]",
        "                Description=Nativelink Service",
        "                After=docker.service",
        "                Requires=docker.service",
        "",
        "                [Service]",
        "                ExecStart=/usr/bin/docker run \\",
        f"                  -p {GRPC_PORT}:{GRPC_PORT} \\",
        f"                  -p {CAS_PORT}:{CAS_PORT} \\",
        *metrics_flag,
        "                  -v /opt/nativelink/config.json5:/config/config.json5 \\",
        f"                  {IMAGE}",
        "                Restart=always",
        "",
        "                [Install]",
        "                WantedBy=multi-user.target",
        "            runcmd:",
        "            - systemctl daemon-reload",
        "            - systemctl enable nativelink.service",
        "            - systemctl start nativelink.service",
        "",
        "- name: nativelink-mig",
        "  type: compute.v1.instanceGroupManager",
        "  properties:",
        "    zone: us-central1-a",
        f"    targetSize: {profile.replicas}",
        "    baseInstanceName: nativelink",
        "    instanceTemplate: $(ref.nativelink-instance-template.selfLink)",
    ]
    if features.autoscaling:
        lines += [
            "    autoHealingPolicies:",
            "    - healthCheck: $(ref.nativelink-health-check.selfLink)",
            "      initialDelaySec: 300",
            "",
            "- name: nativelink-autoscaler",
            "  type: compute.v1.autoscaler",
            "  properties:",
            "    zone: us-central1-a",
            "    target: $(ref.nativelink-mig.selfLink)",
            "    autoscalingPolicy:",
            f"      minNumReplicas: {profile.replicas}",
            f"      maxNumReplicas: {profile.replicas * 3}",
            "      cpuUtilization:",
            "        utilizationTarget: 0.7",
        ]
    if features.monitoring or features.autoscaling:
        lines += [
            "",
            "- name: nativelink-health-check",
            "  type: compute.v1.healthCheck",
            "  properties:",
            "    type: TCP",
            "    tcpHealthCheck:",
            f"      port: {GRPC_PORT}",
            "    checkIntervalSec: 10",
            "    timeoutSec: 5",
            "    healthyThreshold: 2",
            "    unhealthyThreshold: 3",
        ]
    return "\n".join(lines)


def azure_config(profile: ScaleProfile, features: Features) -> str:
    ports = [GRPC_PORT, CAS_PORT] + ([METRICS_PORT] if features.monitoring else [])
    port_entries = [{"port": port, "protocol": "TCP"} for port in ports]
    template = {
        "$schema": "https://schema.management.azure.com/schemas/2019-04-01/deploymentTemplate.json#",
        "contentVersion": "1.0.0.0",
        "parameters": {
            "location": {
                "type": "string",
                "defaultValue": "[resourceGroup().location]",
                "metadata": {"description": "Location for all resources"},
            }
        },
        "variables": {
            "containerGroupName": "nativelink-container-group",
            "containerName": "nativelink",
            "recommendedVmSize": profile.azure_vm_size,
        },
        "resources": [
            {
                "type": "Microsoft.ContainerInstance/containerGroups",
                "apiVersion": "2021-09-01",
                "name": "[variables('containerGroupName')]",
                "location": "[parameters('location')]",
                "properties": {
                    "containers": [
                        {
                            "name": "[variables('containerName')]",
                            "properties": {
                                "image": IMAGE,
                                "ports": port_entries,
                                "environmentVariables": [
                                    {"name": "NATIVELINK_CONFIG", "value": "/config/config.json5"}
                                ],
                                "resources": {
                                    "requests": {
                                        "cpu": profile.cpu,
                                        "memoryInGB": profile.memory_gb,
                                    }
                                },
                            },
                        }
                    ],
                    "osType": "Linux",
                    "restartPolicy": "Always",
                    "ipAddress": {"type": "Public", "ports": port_entries},
                },
            }
        ],
        "outputs": {
            "containerIPAddress": {
                "type": "string",
                "value": (
                    "[reference(resourceId('Microsoft.ContainerInstance/containerGroups', "
                    "variables('containerGroupName'))).ipAddress.ip]"
                ),
            }
        },
    }
    return "# Nativelink Azure Resource Manager Template\n" + json.dumps(template, indent=2)


GENERATORS: dict[str, Callable[[ScaleProfile, Features], str]] = {
    "kubernetes": kubernetes_config,
    "docker": docker_config,
    "aws": aws_config,
    "gcp": gcp_config,
    "azure": azure_config,
}


def generate_deployment_config(platform: str, scale: str, features: list[str]) -> str:
    return GENERATORS[platform](SCALE_PROFILES[scale], Features.from_list(features))


def handle(args: DeploymentInput, context: ToolContext) -> str:
    return generate_deployment_config(args.platform, args.scale, list(args.features))


TOOL = RegisteredTool(
    name=TOOL_NAME,
    description="Generate deployment configuration for Nativelink",
    input_model=DeploymentInput,
    handler=handle,
)
