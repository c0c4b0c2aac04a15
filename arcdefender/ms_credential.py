from azure.identity import AzureCliCredential
from azure.identity import DeviceCodeCredential
from azure.identity import InteractiveBrowserCredential
from azure.identity import ManagedIdentityCredential

from arcdefender.errors import ConfigurationError
from arcdefender.typedefs import RunConf


def get_ms_credential(args: RunConf):
    tenant_id = getattr(args, 'tenant_id', None)
    if args.auth == 'azcli':
        return AzureCliCredential(tenant_id=tenant_id) if tenant_id else AzureCliCredential()
    elif args.auth == 'systemassignedmanagedidentity':
        return ManagedIdentityCredential()
    elif args.auth == 'browser':
        return InteractiveBrowserCredential(tenant_id=tenant_id) if tenant_id else InteractiveBrowserCredential()
    elif args.auth == 'devicecode':
        return DeviceCodeCredential(tenant_id=tenant_id) if tenant_id else DeviceCodeCredential()
    else:
        raise ConfigurationError('Unknown auth mode: %s' % args.auth)
