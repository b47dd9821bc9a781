"""propstore: concurrency-safe properties store with multi-source merge and hot reload.

Provides:
- Loading Java-style .properties from files, URLs and classpath-style resources
- FIRST (first available source) and MERGE (all sources) load policies
- Reader/writer locked access to the live table
- Interval-gated hot reload on read, or from a background watcher

Example usage:
    from propstore import ConfigTypeDescriptor, HotReload, LoadType, PropertiesManager

    descriptor = ConfigTypeDescriptor(
        name="myapp.ServerConfig",
        sources=("file:${HOME}/.myapp/server.properties",
                 "classpath:myapp/ServerConfig.properties"),
        load_type=LoadType.MERGE,
        hot_reload=HotReload(5),
    )
    manager = PropertiesManager(descriptor, {"port": "8080"})
    manager.load()
    print(manager.get("port"))
"""

__version__ = "0.1.0"

from propstore.changes import ChangeDetector, SourceStamp
from propstore.declarative import descriptor_from_dict, load_descriptor
from propstore.descriptor import ConfigTypeDescriptor, HotReload, HotReloadMode, TimeUnit
from propstore.errors import DescriptorError, LoadError, PropertiesSyntaxError, PropstoreError
from propstore.expander import SystemVariablesExpander, VariablesExpander
from propstore.load_type import FirstAvailable, LoadType, MergeAll
from propstore.locks import ReadWriteLock
from propstore.manager import PropertiesManager, ReloadEvent, load_properties_manager
from propstore.parser import list_properties, load_properties, parse_properties
from propstore.resolver import (
    DirectoryResourceLoader,
    PackageResourceLoader,
    ResourceLoader,
    Source,
    SourceResolver,
)
from propstore.watcher import HotReloadWatcher

__all__ = [
    # Main API
    "PropertiesManager",
    "load_properties_manager",
    "ReloadEvent",
    "HotReloadWatcher",
    # Descriptors
    "ConfigTypeDescriptor",
    "HotReload",
    "HotReloadMode",
    "TimeUnit",
    "LoadType",
    "FirstAvailable",
    "MergeAll",
    "load_descriptor",
    "descriptor_from_dict",
    # Sources
    "SourceResolver",
    "Source",
    "ResourceLoader",
    "PackageResourceLoader",
    "DirectoryResourceLoader",
    "ChangeDetector",
    "SourceStamp",
    "VariablesExpander",
    "SystemVariablesExpander",
    # Parsing
    "parse_properties",
    "load_properties",
    "list_properties",
    # Locking
    "ReadWriteLock",
    # Errors
    "PropstoreError",
    "LoadError",
    "PropertiesSyntaxError",
    "DescriptorError",
]
