"""twirpgen: a protoc plugin that emits Twirp RPC clients and servers for Go."""

__version__ = "0.1.0"

# Version stamped into generated files and returned by ProtocGenTwirpVersion().
GENERATOR_VERSION = "v0.1.0"

__all__ = ["GENERATOR_VERSION", "__version__"]
