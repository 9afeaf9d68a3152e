from src.instances.generator import Instance, generate_instance, instance_from_config

__all__ = ["Instance", "generate_instance", "instance_from_config"]
