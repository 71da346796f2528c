# dentview

Display processing and helper code for intra-oral dental X-ray images. It
turns stored 16-bit radiographs into the images that are shown, keeps track of
registered pictures, and manages tooth-chart selection. It also parses the
messages that a scanner tablet sends.

## Modules

- **`dentview.configure`**: the display settings of an image.
  - `VisibleProperties` is a dataclass with rotation, luminance, contrast,
    gamma, emboss, sharpen, fake colour, invert, filter, horizontal and
    vertical mirroring, and the grey-level window `window_begin`/`window_end`.
    Its `to_dict()` gives a record keyed by the column names in `Field`.
  - `properties_from_dict(data)` reads such a record back. Missing or
    mistyped values become zero or false.
  - `origin_visible_properties()` gives the neutral settings.
  - `filtered_origin_visible_properties(image_filter)` gives the neutral tone
    settings only, without rotation, filter or mirroring.
  - `copy_visible_properties(picture)` copies the settings that are present
    in a picture record.
  - `ImageFilter` and `ImageState` are the enums for the filter and the image
    state. `Configure` holds the application-wide defaults and the storage
    directory names.
- **`dentview.processing`**: the pixel pipeline on numpy arrays.
  - The steps are `window_levels`, `adjust_brightness_contrast8`,
    `brightness_and_contrast`, `emboss`, `apply_gamma`, `fake_color`,
    `normalize_rotation`, `rotate` (90/180/270 degrees clockwise) and
    `mirror`.
  - `render_gray(image, props)` turns a 16-bit grey image into a 16-bit
    result.
  - `render_fake_color(image, props)` gives RGB `uint8`, in pseudo-colour
    when the settings ask for it.
- **`dentview.image_store`**: `ImageFactory` is a thread-safe store of
  `ImageData` entries keyed by id.
  - `get_image(id, state)` loads the original or last version from disk on
    first use.
  - `current_image(id)` reads the version selected by the entry's state.
  - `set_image` writes the last version to its file as PNG.
  - `set_image_state` and `set_sharpen_value` change an entry.
  - `get_final_image(id, info)` renders the current version with the
    settings in `info`.
- **`dentview.provider`**: `request_image(factory, request)` answers a
  request of the form `id/...`.
  - A request that ends in `#small` returns a thumbnail one eighth of the
    size.
  - An unknown id returns a black 640x320 16-bit image.
- **`dentview.calibration`**: `raw_to_display(raw, width, height)` decodes
  little-endian 16-bit sensor values and scales them by 16.
  `CalibrationImages` holds the dark and light frames and gives out a new
  `image://fixed_images/...` URL on every update.
- **`dentview.tooth_selector`**: tooth-chart selection.
  - `find_tooth_rects` finds the tooth rectangles in a chart image.
  - `ToothChart` marks teeth and redraws them from the checked and unchecked
    images.
  - `ToothSelector` switches between the `adult` and `kid` charts. It
    toggles teeth with `mouse_event(x, y)`, which takes normalised
    coordinates, and reports `checked_indexes()`.
- **`dentview.discovery`**: scanner discovery and messages.
  - `parse_server_datagram` decodes a tablet's base64 JSON broadcast into a
    `ServerInfo`.
  - `parse_message` turns websocket text into `NewPicture`, `StatusChanged`
    or `SerialConnectionChanged`.
  - `build_url` builds the websocket address.
  - `ConnectionTracker` follows the connection state and calls your
    listeners.
- **`dentview.langs`**: `Langs` loads translations from `key=value` files on
  demand. `my_tr(key)` returns the key itself when it has no translation.
- **`dentview.log`**: `Log(path)` sends tagged debug, info and error messages
  to the `logging` module and also writes them to a file.

## Installation

```
pip install .
```

## Example

```python
import numpy as np
from dentview.configure import origin_visible_properties
from dentview.processing import render_gray
from dentview.discovery import parse_message

raw = np.arange(64, dtype=np.uint16).reshape(8, 8) * 1000
image = render_gray(raw, origin_visible_properties())

message = parse_message('{"message": "status_changed", "status": 2}')
print(message.status)  # 2
```

## What it does not do

- **Networking.** The package opens no sockets. `ConnectionTracker` and the
  parsers in `dentview.discovery` leave the websocket and UDP traffic to the
  caller.
- **Device capture.** It does not capture images from USB sensors.
- **Image filters.** The filters named in `ImageFilter` are not implemented.
- **Sharpening.** Sharpening only happens when you pass a `sharpener`
  callable to `ImageFactory`.
- **Interface and storage.** There is no graphical interface, no patient or
  worker database, and no command-line program.

## Running the tests

```
pip install .[test]
pytest
```