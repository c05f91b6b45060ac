# kagekero

A minimalist puzzle-platformer built on pygame. You guide Kero the frog
through a level made in the Tiled map editor. Kero can run, jump and, for a
short moment, warp sideways.

## Installing

```
pip install .
```

To run the tests, install the test extra and call pytest:

```
pip install .[test]
pytest
```

## Playing

The game loads all of its assets from a packed file named `data.pfs`. This
file must hold the start map `001.tmj`, the images `kero.png` and
`frame.png`, and the tileset image that the map names. Start the game with:

```
kagekero
```

By default the pack is looked up in the directory of the program that was
started (`kagekero.pfs.default_pack_path()`). You can name a different pack
file:

```
kagekero --pack path/to/data.pfs
```

The command returns exit status 1 if the pack, the map or an image cannot be
loaded, or if the window or the audio device cannot be opened.

### Controls

| Action        | Keyboard                | Gamepad             |
|---------------|-------------------------|---------------------|
| Move          | Arrow keys, `A` / `D`   | D-pad               |
| Jump          | `Space`, `7`            | South button        |
| Warp power-up | Left `Shift`, `5`       | East / west button  |
| Quit          | `Escape`                | Back                |

While the warp power-up is active (500 ms), holding left or right places Kero
64 pixels to that side of where the warp began. If the warp ends inside a
wall, Kero goes back to the spawn point. Standing on a coin tile puts on
Kero's mask. Falling out of the bottom of the map also returns Kero to the
spawn point.

## Building an asset pack

`kagekero.pfs.write_pack` writes a pack from names and their contents (a
mapping or a list of pairs), and `kagekero.pfs.PackFile` reads one back.
Both raise `kagekero.pfs.PackFileError` on bad input:

```python
from pathlib import Path
from kagekero.pfs import PackFile, write_pack

write_pack("data.pfs", [
    ("001.tmj", Path("assets/001.tmj").read_bytes()),
    ("kero.png", Path("assets/kero.png").read_bytes()),
    ("tileset.png", Path("assets/tileset.png").read_bytes()),
    ("frame.png", Path("assets/frame.png").read_bytes()),
])

pack = PackFile("data.pfs")
print(pack.names())
print(pack.size_of("001.tmj"))
data = pack.read("kero.png")
```

Entry names may be at most 79 bytes long.

## Maps

Maps are Tiled JSON files (`.tmj`), read by `kagekero.tiled.parse_map` or
`kagekero.tiled.load_tiled_map`. Tile layer data may be a plain list or
base64, optionally zlib- or gzip-compressed. The first tileset must be
embedded in the map; its image name is cut to 15 characters before it is
looked up in the pack.

Tiles can carry the boolean properties `is_coin`, `is_deadly`, `is_door`,
`is_solid` and `is_wall`, and the integer property `offset_top`;
`kagekero.map.build_tile_descs` collects them per cell. An object named
`spawn` in a visible object group marks where Kero starts
(`kagekero.map.find_spawn`). Tiles with a Tiled animation are animated at 15
frames per second.

## What the package does not do

- There is one level: the game always starts `001.tmj` and has no way to go
  to another map.
- The `is_deadly` and `is_door` flags are read, but nothing in the game
  reacts to them.
- An audio device is opened, but no sound is played.
- External tilesets and infinite maps are not supported; loading one raises
  `kagekero.tiled.TiledError`.
- There is no command for building a pack; use `write_pack` from Python.